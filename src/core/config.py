"""
Sandbox execution service configuration
"""
from typing import Dict, List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

class Settings(BaseSettings):
    """Execution service settings"""

    # Application
    app_name: str = "Coderun Sandbox Service"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8002
    workers: int = 1

    # Security
    allowed_origins: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Environment provider: "e2b" or "local_docker"
    provider: str = "e2b"

    # Lifetime budgets (milliseconds)
    run_lifetime_ms: int = 60000
    install_lifetime_ms: int = 120000
    command_timeout_ms: int = 30000

    # Working directory inside environments
    default_cwd: str = "/home/user"

    # Preview URL
    preview_scheme: str = "https"
    preview_port: int = 3000

    # E2B
    e2b_template: str = "base"
    e2b_templates: Dict[str, str] = {}  # runtime selector -> template override
    e2b_request_timeout: float = 30.0

    # Local Docker
    docker_images: Dict[str, str] = {
        "base": "ubuntu:22.04",
        "node": "node:20-slim",
        "python": "python:3.11-slim",
        "gcc": "gcc:13",
        "go": "golang:1.22",
        "rust": "rust:1.74-slim",
        "java": "openjdk:17-slim",
        "php": "php:8.2-cli",
        "ruby": "ruby:3.2-slim",
    }
    docker_memory_limit: str = "512m"
    docker_cpu_limit: float = 0.5

    # Monitoring
    enable_metrics: bool = True

    # PostHog Error Tracking
    posthog_api_key: Optional[str] = None
    posthog_host: str = "https://us.i.posthog.com"

    model_config = SettingsConfigDict(
        env_prefix="CODERUN_",
        env_file=".env",
        case_sensitive=False,
    )

@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
