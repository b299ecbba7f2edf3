from __future__ import annotations

import re
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .ad.models import ADConfig
from .ad_utils import parse_ldap_url

ClientStrategy = Literal["SYNC", "SAFE_SYNC", "SAFE_RESTARTABLE", "RESTARTABLE", "MOCK_SYNC"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EnvSettings(BaseSettings):
    url: str = Field(..., alias="ADLOOKUP_URL")
    base_dn: str = Field("", alias="ADLOOKUP_BASE_DN")
    bind_username: str = Field("", alias="ADLOOKUP_BIND_USERNAME", max_length=128)
    bind_password: str = Field("", alias="ADLOOKUP_BIND_PASSWORD", repr=False)
    domain: str = Field("", alias="ADLOOKUP_DOMAIN", max_length=255)

    starttls: bool = Field(False, alias="ADLOOKUP_STARTTLS")
    tls_validate: bool = Field(False, alias="ADLOOKUP_TLS_VALIDATE")
    ca_pem: str = Field("", alias="ADLOOKUP_CA_PEM", repr=False)
    dns_server: str = Field("", alias="ADLOOKUP_DNS_SERVER")

    connect_timeout_s: float = Field(5.0, alias="ADLOOKUP_CONNECT_TIMEOUT_S", gt=0, le=300)
    receive_timeout_s: float = Field(30.0, alias="ADLOOKUP_RECEIVE_TIMEOUT_S", gt=0, le=3600)
    page_size: int = Field(500, alias="ADLOOKUP_PAGE_SIZE", ge=0, le=10000)
    size_limit: int = Field(0, alias="ADLOOKUP_SIZE_LIMIT", ge=0)
    client_strategy: ClientStrategy = Field("SAFE_SYNC", alias="ADLOOKUP_CLIENT_STRATEGY")

    log_level: LogLevel = Field("INFO", alias="ADLOOKUP_LOG_LEVEL")
    log_dir: str = Field("", alias="ADLOOKUP_LOG_DIR")

    model_config = SettingsConfigDict(populate_by_name=True)

    @field_validator("url", "base_dn", "bind_username", "domain", "dns_server")
    @classmethod
    def _strip(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("url")
    @classmethod
    def _validate_url(cls, v: str) -> str:
        parse_ldap_url(v)
        return v

    @field_validator("domain")
    @classmethod
    def _validate_domain(cls, v: str) -> str:
        s = (v or "").strip().lower()
        if not s:
            return s
        if s[-1] in ".,;":
            raise ValueError("domain must not end with a dot, comma or semicolon")
        for lab in s.split("."):
            if not lab:
                raise ValueError("invalid domain: empty label between dots")
            if len(lab) > 63:
                raise ValueError(f"invalid domain: label '{lab}' is too long (max 63)")
            if not re.fullmatch(r"[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?", lab):
                raise ValueError(f"invalid domain: bad characters in label '{lab}'")
        if len(s) > 253:
            raise ValueError("invalid domain: too long (max 253)")
        return s

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper(cls, v: str) -> str:
        return (v or "INFO").strip().upper()

    def to_config(self) -> ADConfig:
        return ADConfig(
            url=self.url,
            base_dn=self.base_dn,
            bind_username=self.bind_username,
            bind_password=self.bind_password,
            domain=self.domain,
            starttls=self.starttls,
            tls_validate=self.tls_validate,
            ca_pem=self.ca_pem,
            dns_server=self.dns_server,
            connect_timeout_s=self.connect_timeout_s,
            receive_timeout_s=self.receive_timeout_s,
            page_size=self.page_size,
            size_limit=self.size_limit,
            client_strategy=self.client_strategy,
        )


@lru_cache(maxsize=1)
def get_env() -> EnvSettings:
    return EnvSettings()
