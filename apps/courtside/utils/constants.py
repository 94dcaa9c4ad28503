"""
Constants used across the team access and invitation system.
"""

# Invitation lifetime (days)
DEFAULT_INVITATION_EXPIRY_DAYS = 7
MIN_INVITATION_EXPIRY_DAYS = 1
MAX_INVITATION_EXPIRY_DAYS = 30

# Invitation payload limits
MIN_JERSEY_NUMBER = 0
MAX_JERSEY_NUMBER = 99
MAX_POSITION_LENGTH = 50
MAX_INVITATION_MESSAGE_LENGTH = 500

# Bytes of randomness behind each invitation token (256 bits)
INVITATION_TOKEN_BYTES = 32

# Invitation list pagination
DEFAULT_INVITATION_PAGE_SIZE = 20
MAX_INVITATION_PAGE_SIZE = 100

MAX_ROLE_NAME_LENGTH = 100
HEAD_COACH_ROLE_NAME = "Head Coach"
