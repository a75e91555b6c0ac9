import logging.config
import os
from decimal import Decimal
from os import path

# Where is the mhpbilling project source code on disk?
MHPBILLING_ROOT = path.normpath(path.join(path.dirname(path.abspath(__file__)), ".."))

# What shall the billing log be called?
MHPBILLING_LOG_NAME = os.environ.get("MHPBILLING_LOG_NAME", "mhpbilling.log")

# Where does the logging module write logs on disk?
LOGPATH = os.path.join(MHPBILLING_ROOT, MHPBILLING_LOG_NAME)

# What is the name of the environment in which billing is running? Ex. local, development, production
MHPBILLING_ENVIRONMENT = os.environ.get("MHPBILLING_ENVIRONMENT", "local").lower()

# Is the engine running in a unit test framework?
# (Used to simplify DB transaction management and rollback commits.)
UNDER_TEST: bool = (os.environ.get("MHPBILLING_UNDER_TEST", "True").lower() == "true")

# What is the full URL needed to reach the bill ledger database?
DATABASE_URL: str = os.environ.get("DATABASE_URL", "sqlite://")

# Should every SQL query run by the ledger be echoed to the console?
DATABASE_ECHO: bool = (os.environ.get("DATABASE_ECHO", "False").lower() == "true")

# How many days after the end of a billing period is a bill due, when the park doesn't say?
DEFAULT_DUE_DAYS: int = int(os.environ.get("DEFAULT_DUE_DAYS", "15"))

# How far may the sum of RUBS allocation factors drift from 1 before we complain?
RUBS_TOLERANCE: Decimal = Decimal(os.environ.get("RUBS_TOLERANCE", "1e-9"))

# How many lots may be billed at once during a billing run?
BILLING_WORKERS: int = int(os.environ.get("BILLING_WORKERS", "1"))

# What log level should the billing logger use?
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# What log level shall dependencies use?
DEPENDENCY_LOG_LEVEL = os.environ.get("DEPENDENCY_LOG_LEVEL", "WARN")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": True,
    "formatters": {"standard": {"format": "%(asctime)s : %(levelname)s : %(message)s"}},
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "standard"},
        "file": {
            "class": "logging.FileHandler",
            "filename": LOGPATH,
            "formatter": "standard",
            "delay": True,
        },
    },
    "root": {
        "handlers": ["console"],
        "level": DEPENDENCY_LOG_LEVEL,
        "propagate": False,
    },
    "loggers": {
        "mhpbilling": {
            "level": LOG_LEVEL,
            "handlers": ["console"]
            if MHPBILLING_ENVIRONMENT == "local"
            else ["console", "file"],
            "propagate": False,
        }
    },
}

logging.config.dictConfig(LOGGING)
