"""Pydantic models for engine settings."""

from typing import Optional
from pydantic import BaseModel, Field


class EngineSection(BaseModel):
    """Scheduling and state location."""
    parallelism: int = Field(default=4, ge=1, description="Maximum provider operations in flight")
    state_path: str = Field(default="tinyform.state.json", description="Path of the state file")


class RetrySection(BaseModel):
    """Retry policy for transient provider errors."""
    attempts: int = Field(default=3, ge=1, description="Total attempts per provider call")
    base_delay_seconds: float = Field(default=1.0, ge=0, description="First backoff delay")
    max_delay_seconds: float = Field(default=8.0, ge=0, description="Upper bound for a single delay")


class ProviderSection(BaseModel):
    """Provider selection."""
    name: str = Field(default="simulated", description="Built-in provider name")
    factory: Optional[str] = Field(default=None, description="'module:callable' returning a Provider")
    timeout_seconds: float = Field(default=60, gt=0, description="Timeout for a single provider call")
    region: str = Field(default="us-east-1", description="Region passed to the provider")


class LoggingSection(BaseModel):
    """Logging verbosity."""
    level: str = Field(default="WARNING", description="Root tinyform log level")


class EngineSettings(BaseModel):
    """Validated, merged configuration."""
    engine: EngineSection = Field(default_factory=EngineSection)
    retry: RetrySection = Field(default_factory=RetrySection)
    provider: ProviderSection = Field(default_factory=ProviderSection)
    logging: LoggingSection = Field(default_factory=LoggingSection)
