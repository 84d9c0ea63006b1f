import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = Path(os.environ.get("ZIPHUB_DATA_DIR", BASE_DIR / "data"))

LOG_LEVEL = os.environ.get("ZIPHUB_LOG_LEVEL", "INFO")
LOG_FORMAT = os.environ.get("ZIPHUB_LOG_FORMAT", "plain")

COLLECTION_DEFAULTS = {
    "accounts": [],
    "developers": [],
    "sessions": [],
    "follows": {"boosts": {}, "edges": []},
    "verifications": {},
    "files": [],
    "likes": [],
    "comments": [],
    "reports": [],
}

TITLE_MAX_LENGTH = 80
DESCRIPTION_MAX_LENGTH = 1000
BIO_MAX_LENGTH = 500
COMMENT_MAX_LENGTH = 300
REPORT_REASON_MAX_LENGTH = 300

VERIFICATION_THRESHOLD = 20

CREATOR_USERNAME = os.environ.get("ZIPHUB_CREATOR_USERNAME", "james")
CREATOR_PASSWORD = os.environ.get("ZIPHUB_CREATOR_PASSWORD", "6033")
CREATOR_DISPLAY_NAME = "James (Creator)"
CREATOR_BIO = "ZIPHUB creator"
CREATOR_BADGE = "creator"
CREATOR_FOLLOWER_BOOST = 3000

DEFAULT_AVATAR = "/public/img/logo.svg"
DEFAULT_BADGE = "verified"
DEFAULT_CREATED_FOLLOWER_BOOST = 50

SEED_LIKES_MIN = 60
SEED_LIKES_MAX = 139
SEED_USER_PREFIX = "seed-"

PASSWORD_HASH_ITERATIONS = int(os.environ.get("ZIPHUB_PASSWORD_ITERATIONS", "120000"))

SESSION_COOKIE = "token"
