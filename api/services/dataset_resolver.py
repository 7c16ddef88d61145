from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional

from api.config import settings
from api.db.client import DatabaseClient

log = logging.getLogger(__name__)


class IrradianceResolutionError(Exception):
    """Base class for fatal, non-substitutable irradiance resolution failures."""


class DatasetNotFoundError(IrradianceResolutionError):
    def __init__(self, dataset_code: str) -> None:
        self.dataset_code = dataset_code
        super().__init__(f"Irradiance dataset {dataset_code!r} not found")


class NoActiveVersionError(IrradianceResolutionError):
    def __init__(self, dataset_code: str) -> None:
        self.dataset_code = dataset_code
        super().__init__(
            f"No active irradiance version for dataset {dataset_code!r}. "
            "Import a version before resolving irradiance."
        )


@dataclass(frozen=True)
class ResolvedDataset:
    dataset_code: str
    version_id: int
    version_tag: str
    lookup_method: str


@dataclass(frozen=True)
class _EffectiveConfig:
    dataset_code: str
    version_id: Optional[int]
    lookup_method: str


class DatasetResolver:
    """Pick the irradiance dataset version a lookup should read from.

    Order:

    1. an explicit ``dataset_code_override`` skips the tenant lookup;
    2. otherwise the tenant's ``TenantIrradianceConfig`` row, if any;
    3. otherwise the system default dataset code.

    An explicit ``version_id_override`` pins the version on top of whichever
    config was chosen, so an audited result can be re-resolved exactly.

    A pinned ``version_id`` is trusted as-is.  Without one, the most recently
    ingested ``active`` version of the dataset is used.  Nothing is guessed:
    a missing dataset or active version raises.
    """

    def __init__(
        self,
        db: DatabaseClient | None = None,
        default_dataset_code: str | None = None,
        default_lookup_method: str | None = None,
    ) -> None:
        self._db = db or DatabaseClient()
        self._default_code = default_dataset_code or settings.DEFAULT_DATASET_CODE
        self._default_method = default_lookup_method or settings.DEFAULT_LOOKUP_METHOD

    # ------------------------------------------------------------------
    # Config steps: each returns a config or None to fall through
    # ------------------------------------------------------------------

    def _from_override(self, tenant_id: str | None, override: str | None) -> Optional[_EffectiveConfig]:
        if not override:
            return None
        return _EffectiveConfig(override, None, self._default_method)

    def _from_tenant(self, tenant_id: str | None, override: str | None) -> Optional[_EffectiveConfig]:
        if tenant_id is None:
            return None
        tenant_cfg = self._db.get_tenant_config(tenant_id)
        if tenant_cfg is None:
            return None
        return _EffectiveConfig(
            tenant_cfg.dataset_code,
            tenant_cfg.version_id,
            tenant_cfg.lookup_method or self._default_method,
        )

    def _from_default(self, tenant_id: str | None, override: str | None) -> Optional[_EffectiveConfig]:
        return _EffectiveConfig(self._default_code, None, self._default_method)

    def _effective_config(self, tenant_id: str | None, override: str | None) -> _EffectiveConfig:
        for step in (self._from_override, self._from_tenant, self._from_default):
            config = step(tenant_id, override)
            if config is not None:
                return config
        raise AssertionError("default config step always returns")

    def resolve(
        self,
        tenant_id: str | None = None,
        dataset_code_override: str | None = None,
        version_id_override: int | None = None,
    ) -> ResolvedDataset:
        config = self._effective_config(tenant_id, dataset_code_override)
        if version_id_override is not None:
            config = replace(config, version_id=version_id_override)

        if config.version_id is not None:
            pinned = self._db.get_version(config.version_id)
            return ResolvedDataset(
                dataset_code=config.dataset_code,
                version_id=config.version_id,
                version_tag=pinned.version_tag if pinned is not None else "unknown",
                lookup_method=config.lookup_method,
            )

        dataset = self._db.get_dataset_by_code(config.dataset_code)
        if dataset is None:
            raise DatasetNotFoundError(config.dataset_code)

        version = self._db.get_latest_active_version(dataset.id)
        if version is None:
            raise NoActiveVersionError(config.dataset_code)

        log.debug(
            "Resolved dataset %s → version %s (%s)",
            config.dataset_code, version.id, version.version_tag,
        )
        return ResolvedDataset(
            dataset_code=config.dataset_code,
            version_id=version.id,
            version_tag=version.version_tag,
            lookup_method=config.lookup_method,
        )
