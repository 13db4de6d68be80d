"""
Run settings resolved from the environment (optionally a .env file).
"""

import os
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel

from restaurant_unifier.errors import ConfigurationError


class ResolutionPolicy(str, Enum):
    """What a mapper does with a line item whose product cannot be resolved."""
    DROP = "drop"
    KEEP = "keep"
    ABORT = "abort"


class PlatformFailurePolicy(str, Enum):
    """What the orchestrator does when one platform's contribution fails."""
    ABORT = "abort"
    CONTINUE = "continue"


class RunPolicy(BaseModel):
    unresolved: ResolutionPolicy = ResolutionPolicy.DROP
    platform_failure: PlatformFailurePolicy = PlatformFailurePolicy.ABORT

    model_config = {"frozen": True}


# Environment variable -> Settings field
PATH_VARIABLES = {
    'LOCATIONS_PATH': 'locations_path',
    'VARIATION_PATTERNS_PATH': 'variation_patterns_path',
    'PRODUCT_GROUPS_PATH': 'product_groups_path',
    'TOAST_POS_PATH': 'toast_pos_path',
    'DOORDASH_ORDERS_PATH': 'doordash_orders_path',
    'SQUARE_LOCATIONS_PATH': 'square_locations_path',
    'SQUARE_CATALOG_PATH': 'square_catalog_path',
    'SQUARE_ORDERS_PATH': 'square_orders_path',
    'SQUARE_PAYMENTS_PATH': 'square_payments_path',
}


class Settings(BaseModel):
    """Paths to every input document plus the run policy."""
    locations_path: Path
    variation_patterns_path: Path
    product_groups_path: Path
    toast_pos_path: Path
    doordash_orders_path: Path
    square_locations_path: Path
    square_catalog_path: Path
    square_orders_path: Path
    square_payments_path: Path
    policy: RunPolicy = RunPolicy()

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None) -> "Settings":
        """
        Builds settings from environment variables.

        Every missing required variable is reported in a single error so an
        operator can fix the .env file in one pass.
        """
        if env_file:
            load_dotenv(env_file, override=True)
        else:
            load_dotenv()

        missing = [var for var in PATH_VARIABLES if not os.getenv(var)]
        if missing:
            raise ConfigurationError(
                "Missing environment variables:\n" + "\n".join(f"  - {v}" for v in missing)
            )

        values = {field: Path(os.environ[var]) for var, field in PATH_VARIABLES.items()}

        try:
            policy = RunPolicy(
                unresolved=ResolutionPolicy(os.getenv('UNIFIER_UNRESOLVED_POLICY', 'drop').lower()),
                platform_failure=PlatformFailurePolicy(
                    os.getenv('UNIFIER_PLATFORM_FAILURE_POLICY', 'abort').lower()
                ),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid run policy: {e}") from e

        return cls(policy=policy, **values)
