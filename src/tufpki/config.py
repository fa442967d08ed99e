import os
from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("TUFPKI_LOG_LEVEL", "INFO").upper()

# Expiry is off by default: a pinned root is trusted for as long as the caller keeps it
ENFORCE_EXPIRY = os.getenv("TUFPKI_ENFORCE_EXPIRY", "false").lower() == "true"

# Upper bound on a single metadata document read from a reader
MAX_METADATA_BYTES = int(os.getenv("TUFPKI_MAX_METADATA_BYTES", str(5 * 1024 * 1024)))

# Roles whose documents must carry their own name as _type; everything else is a delegation of targets
TOP_LEVEL_ROLES = ("root", "targets", "snapshot", "timestamp")
