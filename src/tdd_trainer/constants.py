"""Constants for the trainer."""

from pathlib import Path

# Compile diagnostics tolerated in RED: they come from referencing
# production code that has not been written yet
MISSING_SYMBOL_TOKEN = "cannot find symbol"
METHOD_TOKEN = "method"

DEFAULT_EXECUTION_TIMEOUT_S = 60.0

DEFAULT_WORKSPACE_DIR = Path("kata")
DEFAULT_REPORTS_DIR = Path("execution/reports")

# Bundled sample catalog and its schema
PACKAGE_DIR = Path(__file__).parent
BUNDLED_CATALOG = PACKAGE_DIR / "data" / "exercises.yaml"
CATALOG_SCHEMA = PACKAGE_DIR / "schemas" / "exercise_catalog.schema.json"
