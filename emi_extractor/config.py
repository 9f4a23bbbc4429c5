"""Runtime configuration loaded from the environment (and a local .env file)."""
import os
from typing import Dict

from dotenv import load_dotenv

load_dotenv()


def _parse_card_banks(raw: str) -> Dict[str, str]:
    """Parse ``6529=ICICI Bank,4315=ICICI Bank`` into a BIN prefix map."""
    banks = {}
    for item in raw.split(","):
        if "=" not in item:
            continue
        prefix, bank = item.split("=", 1)
        if prefix.strip() and bank.strip():
            banks[prefix.strip()] = bank.strip()
    return banks


DATA_DIR = os.environ.get("EMI_DATA_DIR", "data")
EXTRACTIONS_FILE = os.environ.get(
    "EMI_EXTRACTIONS_FILE", os.path.join(DATA_DIR, "raw-extracts", "statement-extractions.json"))
PLANS_FILE = os.environ.get(
    "EMI_PLANS_FILE", os.path.join(DATA_DIR, "raw-extracts", "emi-plans.json"))
ENRICHED_FILE = os.environ.get("EMI_ENRICHED_FILE", os.path.join(DATA_DIR, "enriched-emis.json"))

# Below a ~30 day billing cycle so statement date jitter still links installments
MIN_PLAN_GAP_DAYS = int(os.environ.get("EMI_MIN_GAP_DAYS", 20))

LOG_DIR = os.environ.get("EMI_LOG_DIR", "logs")

CARD_BANKS = _parse_card_banks(os.environ.get("EMI_CARD_BANKS", "6529=ICICI Bank,4315=ICICI Bank"))
