"""
Build configuration.

Values are layered (lowest first): field defaults, ``HD1GEN_*`` environment
variables, the merged ``x-code-generation`` block of the schema documents,
and finally explicit overrides from the command line.
"""

from typing import Any, Dict, Literal, Mapping, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class BuildConfig(BaseSettings):
    strict_validation: bool = False
    auto_routing: bool = True
    handler_validation: bool = True
    fail_on_missing_handlers: bool = False
    path_conflicts: Literal["override", "error"] = "override"

    api_base: str = "http://localhost:8080/api"
    router_file: str = "auto_router.py"
    cli_file: str = "hd1_client.py"
    scripting_file: str = "hd1lib.js"

    model_config = SettingsConfigDict(env_prefix="HD1GEN_", extra="ignore")

    @property
    def missing_handlers_fatal(self) -> bool:
        return self.fail_on_missing_handlers or self.strict_validation

    @classmethod
    def resolve(
        cls,
        spec_block: Optional[Mapping[str, Any]] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> "BuildConfig":
        """Build the effective configuration for one run."""
        values: Dict[str, Any] = {}
        values.update(normalize_keys(spec_block or {}))
        values.update({k: v for k, v in normalize_keys(overrides or {}).items() if v is not None})
        return cls(**values)


def normalize_keys(block: Mapping[str, Any]) -> Dict[str, Any]:
    """'strict-validation' -> 'strict_validation'."""
    return {str(k).replace("-", "_"): v for k, v in block.items()}
