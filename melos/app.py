"""Application wiring: one set of stores, token service and workflows per process."""

import time
from typing import Callable, Optional

from .auth.service import CredentialStore
from .auth.tokens import TokenService
from .auth.workflow import AuthWorkflow
from .core.config import Settings, load_settings
from .orders.store import OrderStore
from .orders.workflow import OrderWorkflow
from .utils.logger import get_logger, setup_logger

logger = get_logger(__name__)


class MelosApp:
    """Holds the process-wide services built from one Settings snapshot."""

    def __init__(self, settings: Settings, clock: Callable[[], float] = time.time):
        self.settings = settings

        storage = settings.storage
        self.credentials = CredentialStore(
            storage.data_dir,
            bcrypt_rounds=settings.auth.bcrypt_rounds,
            lock_timeout_seconds=storage.lock_timeout_seconds,
        )
        self.orders = OrderStore(storage.data_dir, lock_timeout_seconds=storage.lock_timeout_seconds)
        # The signing key is read here once; changing it means a new MelosApp.
        self.tokens = TokenService(
            settings.auth.secret_key,
            ttl_seconds=settings.auth.token_ttl_seconds,
            clock=clock,
        )
        self.auth = AuthWorkflow(self.credentials, self.tokens)
        self.order_workflow = OrderWorkflow(self.tokens, self.orders, self.credentials)

    def initialize(self) -> "MelosApp":
        """Set up logging and the data directory."""
        log = self.settings.logging
        setup_logger(
            log_level=log.level,
            log_format=log.format,
            file_path=log.file_path,
            max_bytes=log.max_bytes,
            backup_count=log.backup_count,
        )
        self.settings.storage.data_dir.mkdir(parents=True, exist_ok=True)
        logger.info(
            "Application initialized",
            app_name=self.settings.app.name,
            version=self.settings.app.version,
            environment=self.settings.app.environment,
            data_dir=str(self.settings.storage.data_dir),
        )
        return self


def build_app(settings: Optional[Settings] = None) -> MelosApp:
    return MelosApp(settings or load_settings()).initialize()
