"""CAS Overlay - build wiring and resource reconciliation for Apereo CAS overlays."""

__version__ = "0.1.0"

# Directory and file constants
CONFIG_FILE = "cas.json"
RESOURCES_DIR = "src/main/resources"
BUILD_TMP_DIR = "build/tmp"
COPY_TASK_DIR = "copyCasResources"
CLEAN_TASK_DIR = "cleanCasResources"

# Appended to upstream copies of resources that were customised locally
CAS_ORIG_SUFFIX = ".casorig"
