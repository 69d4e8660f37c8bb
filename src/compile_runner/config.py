# Copyright 2025 John Brosnihan
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
Configuration module for compile-runner service.

Manages environment variables and application settings using Pydantic BaseSettings.
"""

import shlex
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults where safe to prevent boot failures.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Environment
    app_env: str = Field(default="development", description="Application environment")
    port: int = Field(default=8080, description="Server port")

    # CORS Configuration
    cors_origins: str = Field(
        default="",
        description="Comma-separated list of allowed CORS origins",
    )

    # Application Version
    app_version: str = Field(default="0.1.0", description="Application version")

    # Request ID Header
    request_id_header: str = Field(
        default="X-Request-Id", description="Header name for request correlation"
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=True, description="Enable JSON structured logging")

    # Request Body Limits
    max_request_body_size_bytes: int = Field(
        default=10_485_760,  # 10MB default
        description="Maximum request body size in bytes",
        gt=0,
    )

    # Toolchain Configuration
    toolchain_command: str = Field(
        default="elm-make",
        description="Compiler binary invoked for every compile request",
    )
    toolchain_flags: str = Field(
        default="--yes",
        description="Space-separated fixed flags passed before --output",
    )
    toolchain_output_suffix: str = Field(
        default=".js",
        description="Suffix appended to the reserved output name for the compiled artifact",
    )
    toolchain_stub_mode: bool = Field(
        default=False,
        description="Use the stub toolchain instead of spawning a compiler",
    )
    compile_timeout_seconds: float | None = Field(
        default=None,
        description="Optional upper bound on a single compiler run",
        gt=0,
    )

    # Workspace Configuration
    workspace_dir: str | None = Field(
        default=None,
        description="Directory for temporary compile files. Defaults to the system temp dir.",
    )
    workspace_prefix: str = Field(
        default="compile-",
        description="Filename prefix for temporary compile files",
    )

    # Rendering
    render_entrypoint: str = Field(
        default="Elm.Main.fullscreen();",
        description="Script executed on load to start the compiled program",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        if not self.cors_origins or self.cors_origins.strip() == "":
            return []
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def toolchain_flags_list(self) -> list[str]:
        """Split the fixed toolchain flags the way a shell would."""
        return shlex.split(self.toolchain_flags)

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env.lower() == "development"

    @field_validator("toolchain_command")
    @classmethod
    def validate_toolchain_command(cls, v: str) -> str:
        """
        Validate that a toolchain command is configured.

        Args:
            v: The command value to validate

        Returns:
            The validated command with surrounding whitespace removed

        Raises:
            ValueError: If the command is empty or whitespace-only
        """
        if not v or not v.strip():
            raise ValueError("Toolchain command cannot be empty")
        return v.strip()

    @field_validator("toolchain_output_suffix")
    @classmethod
    def validate_output_suffix(cls, v: str) -> str:
        """
        Validate that the output suffix looks like a file extension.

        Raises:
            ValueError: If the suffix does not start with a dot
        """
        if not v.startswith("."):
            raise ValueError(f"Invalid output suffix '{v}'. Must start with '.'")
        return v

    def validate_toolchain_config(self) -> dict[str, str]:
        """
        Validate toolchain configuration and return status.

        Returns:
            Dictionary with validation results for the toolchain setup.
            Keys: 'mode', 'command', 'workspace_dir', 'timeout'
            Values: 'ok', 'stub', 'missing', 'not_a_directory', or specific status
        """
        result: dict[str, str] = {}

        result["mode"] = "stub" if self.toolchain_stub_mode else "subprocess"
        result["command"] = "ok" if self.toolchain_command.strip() else "missing"

        if self.workspace_dir:
            workspace_path = Path(self.workspace_dir)
            if not workspace_path.exists():
                result["workspace_dir"] = "missing"
            elif not workspace_path.is_dir():
                result["workspace_dir"] = "not_a_directory"
            else:
                result["workspace_dir"] = "ok"
        else:
            result["workspace_dir"] = "using_default"

        result["timeout"] = (
            "disabled" if self.compile_timeout_seconds is None else "ok"
        )

        return result


# Global settings instance
settings = Settings()
