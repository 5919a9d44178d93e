# graphml_importer/utils/config.py

import os
from dotenv import load_dotenv

load_dotenv()

# Neo4j connection (CLI flags override these)
NEO4J_URI = os.getenv("NEO4J_URI")
NEO4J_USER = os.getenv("NEO4J_USER")
NEO4J_PASSWORD = os.getenv("NEO4J_PASSWORD")

# Label decoration and index requests
LABEL_PREFIX = os.getenv("GRAPHML_LABEL_PREFIX")
LABEL_SUFFIX = os.getenv("GRAPHML_LABEL_SUFFIX")
MODIFY_NODE_LABELS = os.getenv("GRAPHML_MODIFY_NODE_LABELS")
MODIFY_EDGE_LABELS = os.getenv("GRAPHML_MODIFY_EDGE_LABELS")
INDICES = os.getenv("GRAPHML_INDICES")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE")

# Import batching
BATCH_SIZE = 1000           # records per UNWIND statement (per label)
PROGRESS_INTERVAL = 5000    # records between progress log lines
TRANSACTION_SIZE = 20000    # records between transaction commits

# Input files ending in one of these are gunzipped on the fly
COMPRESSED_SUFFIXES = (".gz", ".gzip")

# lxml huge_tree lifts libxml2 text-size and depth limits; opt in for trusted inputs only
XML_HUGE_TREE = os.getenv("GRAPHML_HUGE_TREE", "false").lower() == "true"

# Neo4j version thresholds
NEO4J_4_VERSION = (4, 0)
NEW_INDEX_CREATION_VERSION = (4, 1, 3)

# Update check
PACKAGE_NAME = "neo4j-graphml-importer"
RELEASE_URL = f"https://pypi.org/pypi/{PACKAGE_NAME}/json"
UPDATE_CHECK_TIMEOUT = 5  # seconds
SKIP_UPDATE_CHECK = os.getenv("GRAPHML_SKIP_UPDATE_CHECK", "false").lower() == "true"
