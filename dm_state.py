import os

import boto3
from botocore.config import Config
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


# Combat-log emitter (websocket)
ACT_HOST = os.getenv("DM_ACT_HOST", "127.0.0.1")
ACT_PORT = int(os.getenv("DM_ACT_PORT", "24399"))
ACT_AUTOCONNECT = _flag("DM_ACT_AUTOCONNECT", "1")

# HTTP API
SERVER_HOST = os.getenv("DM_SERVER_HOST", "0.0.0.0")
SERVER_PORT = int(os.getenv("DM_SERVER_PORT", "5000"))

# Raw message log per record, off by default (memory grows with every event)
RECORD_MESSAGES = _flag("DM_RECORD_MESSAGES", "0")

# AWS
S3_BUCKET = os.getenv("DM_S3_BUCKET")
S3_PREFIX = os.getenv("DM_S3_PREFIX", "")
AWS_REGION = os.getenv("AWS_REGION")
EXPORT_URL_EXPIRES = int(os.getenv("DM_EXPORT_URL_EXPIRES", "3600"))
s3 = None
if S3_BUCKET and AWS_REGION:
    s3 = boto3.client(
        "s3",
        region_name=AWS_REGION,
        config=Config(signature_version="s3v4", s3={"addressing_style": "virtual"}),
    )

print(
    f"Configuration loaded. act={ACT_HOST}:{ACT_PORT}, autoconnect={ACT_AUTOCONNECT}, record_messages={RECORD_MESSAGES}, s3_export={s3 is not None}"
)

# Damage filtering
IGNORED_TARGET_ID = 0x22A350F  # secondary-effect target, never attributed to a player
MAX_PARTY_SLOTS = 8  # party indices 0-7; anything else is not a party member

# Frame settings
FRAME_MS = 1000
MINUTE_FRAMES = 60
