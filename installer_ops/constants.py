"""
Constants for the installer operations package.
"""
from pathlib import Path
import os

# Application information
APP_NAME = "installer-ops"

# Paths
CONFIG_DIR = Path(os.path.expanduser(f"~/.config/{APP_NAME}"))
CONFIG_FILE = CONFIG_DIR / "config.toml"
LOG_DIR = CONFIG_DIR / "logs"

# Environment variables read by the config manager
ENV_DEBUG = "INSTALLER_OPS_DEBUG"
ENV_PRUNE_BOUNDARY = "INSTALLER_OPS_PRUNE_BOUNDARY"

# Logging
LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {extra[name]} | {message}"
LOG_ROTATION = "100 MB"
LOG_RETENTION = "10 days"

# Operation names, as they appear in argument scripts and serialized logs
OP_COPY_DIRECTORY = "CopyDirectory"
OP_CREATE_SHORTCUT = "CreateShortcut"

# Persisted value keys
KEY_FILES = "files"
KEY_DIRECTORIES = "directories"
KEY_CREATED_DIRECTORIES = "created_directories"

# Argument tokens
FORCE_OVERWRITE = "forceOverwrite"
WORKING_DIRECTORY_OPTION = "workingDirectory="

# Progress event published once per created or removed artifact
OUTPUT_TEXT_CHANGED = "output_text_changed"

# Files the desktop shell drops into folders on its own
SYSTEM_GENERATED_FILES = [
    ".DS_Store",          # macOS Finder
    "Thumbs.db",          # Windows Explorer thumbnails
]
