"""
Statecheck - Configuration State Compliance
"""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application Info
    APP_NAME: str = "Statecheck"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "WARNING"  # DEBUG forces DEBUG regardless

    # Module search path merge
    MODULE_PATH_VARIABLE: str = "PSModulePath"
    MACHINE_ENVIRONMENT_KEY: str = (
        r"HKEY_LOCAL_MACHINE\SYSTEM\CurrentControlSet\Control\Session Manager\Environment"
    )

    # Trust zones (EscDomains and Domains are created below this root)
    TRUST_ZONE_ROOT: str = (
        r"HKEY_CURRENT_USER\Software\Microsoft\Windows\CurrentVersion\Internet Settings\ZoneMap"
    )
    TRUST_ZONE_FLAG_NAME: str = "file"
    TRUST_ZONE_FLAG_VALUE: int = 1  # 1 = Local intranet

    # Directory service
    # Example: LDAP_SERVER="dc01.contoso.com", LDAP_BASE_DN="DC=contoso,DC=com"
    LDAP_SERVER: Optional[str] = None
    LDAP_PORT: int = 389
    LDAP_USE_SSL: bool = False
    LDAP_BIND_DN: Optional[str] = None
    LDAP_BIND_PASSWORD: Optional[str] = None
    LDAP_BASE_DN: str = ""

    # Installed product discovery
    PRODUCT_DISPLAY_NAMES: list[str] = [
        "Microsoft Office Web Apps Server 2013",
        "Microsoft Office Online Server",
    ]
    UNINSTALL_KEYS: list[str] = [
        r"HKEY_LOCAL_MACHINE\SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall",
        r"HKEY_LOCAL_MACHINE\SOFTWARE\WOW6432Node\Microsoft\Windows\CurrentVersion\Uninstall",
    ]

    # Maximum request body size in bytes (1MB default)
    MAX_REQUEST_SIZE: int = 1024 * 1024

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
