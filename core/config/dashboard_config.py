#!/usr/bin/env python3
"""Dashboard service main configuration

Combines the infrastructure, logging and service sub-configs.
"""
from dataclasses import dataclass, field

from .infra_config import InfraConfig
from .logging_config import LoggingConfig
from .service_config import ServiceConfig


@dataclass
class DashboardConfig:
    """Top-level configuration for the dashboard service"""
    environment: str = "development"
    infra: InfraConfig = field(default_factory=InfraConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)

    @classmethod
    def from_env(cls) -> 'DashboardConfig':
        logging_config = LoggingConfig.from_env()
        return cls(
            environment=logging_config.environment,
            infra=InfraConfig.from_env(),
            logging=logging_config,
            service=ServiceConfig.from_env(),
        )
