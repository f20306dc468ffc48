"""Configuration and logging setup for the family graph engine."""

import logging
import os

from dotenv import load_dotenv

from tree_layout import LayoutConfig

# Load environment variables from .env file
load_dotenv()

LOG_LEVEL = os.getenv("FAMILYGRAPH_LOG_LEVEL", "INFO")

# Layout spacing overrides (drawing units)
H_SPACING = float(os.getenv("FAMILYGRAPH_H_SPACING", "180"))
V_SPACING = float(os.getenv("FAMILYGRAPH_V_SPACING", "120"))
SPOUSE_OFFSET = float(os.getenv("FAMILYGRAPH_SPOUSE_OFFSET", "140"))


def configure_logging(level: str | None = None) -> logging.Logger:
    """Configure root logging once and return the package logger."""
    logging.basicConfig(
        level=(level or LOG_LEVEL).upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    return logging.getLogger("familygraph")


def load_layout_config() -> LayoutConfig:
    """LayoutConfig with the spacing taken from the environment."""
    return LayoutConfig(
        horizontal_spacing=H_SPACING,
        vertical_spacing=V_SPACING,
        spouse_offset=SPOUSE_OFFSET,
    )
