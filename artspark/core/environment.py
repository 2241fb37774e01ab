"""
Service wiring for the two data sources.

"simulated" keeps everything in memory (local development, demos, tests).
"live" uses the SQL stores, HTTP image storage and a durable queue backend.
The choice is made once from DATA_SOURCE; services only see the interfaces.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional

from artspark.core.config import Settings, settings
from artspark.core.dates import resolve_timezone
from artspark.features.connectivity.monitor import ConnectivityMonitor, HttpConnectivityProbe
from artspark.features.preferences.store import InMemoryPreferenceStore, PreferenceStore
from artspark.features.prompts.service import PromptGenerationEngine
from artspark.features.prompts.store import InMemoryPromptStore, PromptStore
from artspark.features.responses.service import ResponseService
from artspark.features.responses.store import InMemoryResponseStore, ResponseStore
from artspark.features.streaks.service import StreakService
from artspark.features.submissions.orchestrator import SubmissionOrchestrator
from artspark.features.submissions.queue import OfflineSubmissionQueue
from artspark.features.submissions.storage import FileStorage, InMemoryStorage, KeyValueStorage, RedisStorage
from artspark.features.submissions.transfer import HttpImageTransfer, ImageTransfer, SimulatedImageTransfer

logger = logging.getLogger("artspark")


@dataclass
class Environment:
    name: str
    preferences: PreferenceStore
    prompts: PromptStore
    responses: ResponseStore
    transfer: ImageTransfer
    queue_storage: KeyValueStorage
    queue: OfflineSubmissionQueue
    monitor: ConnectivityMonitor
    streaks: StreakService
    engine: PromptGenerationEngine
    response_service: ResponseService
    orchestrator: SubmissionOrchestrator
    probe: Optional[HttpConnectivityProbe] = None


def _assemble(
    name: str,
    cfg: Settings,
    *,
    preferences: PreferenceStore,
    prompts: PromptStore,
    responses: ResponseStore,
    transfer: ImageTransfer,
    queue_storage: KeyValueStorage,
    monitor: ConnectivityMonitor,
    rng: Optional[random.Random] = None,
) -> Environment:
    queue = OfflineSubmissionQueue(
        queue_storage,
        cfg.QUEUE_STORAGE_KEY,
        max_retry=cfg.QUEUE_MAX_RETRY,
        expiry_days=cfg.QUEUE_EXPIRY_DAYS,
    )
    streaks = StreakService(responses, resolve_timezone(cfg.STREAK_TIMEZONE))
    engine = PromptGenerationEngine(
        prompts,
        preferences,
        responses,
        rng=rng,
        window_days=cfg.ROTATION_WINDOW_DAYS,
    )
    response_service = ResponseService(responses, transfer, prompts)
    orchestrator = SubmissionOrchestrator(
        response_service,
        queue,
        monitor,
        streaks,
        online_timeout=cfg.ONLINE_ATTEMPT_TIMEOUT_SECONDS,
    )
    return Environment(
        name=name,
        preferences=preferences,
        prompts=prompts,
        responses=responses,
        transfer=transfer,
        queue_storage=queue_storage,
        queue=queue,
        monitor=monitor,
        streaks=streaks,
        engine=engine,
        response_service=response_service,
        orchestrator=orchestrator,
    )


def build_simulated_environment(cfg: Optional[Settings] = None, rng: Optional[random.Random] = None) -> Environment:
    return _assemble(
        "simulated",
        cfg or settings,
        preferences=InMemoryPreferenceStore(),
        prompts=InMemoryPromptStore(),
        responses=InMemoryResponseStore(),
        transfer=SimulatedImageTransfer(),
        queue_storage=InMemoryStorage(),
        monitor=ConnectivityMonitor(connected=True),
        rng=rng,
    )


def _queue_storage(cfg: Settings) -> KeyValueStorage:
    if (cfg.QUEUE_BACKEND or "file").lower() == "redis":
        return RedisStorage(cfg.REDIS_URL)
    return FileStorage(cfg.QUEUE_STORAGE_DIR)


def build_live_environment(cfg: Optional[Settings] = None) -> Environment:
    from artspark.core.database import init_engine
    from artspark.features.preferences.store_sql import SqlPreferenceStore
    from artspark.features.prompts.store_sql import SqlPromptStore
    from artspark.features.responses.store_sql import SqlResponseStore

    cfg = cfg or settings
    if not cfg.STORAGE_BASE_URL:
        raise ValueError(
            "STORAGE_BASE_URL is not configured. "
            "Set STORAGE_BASE_URL in environment or .env file."
        )
    init_engine(cfg.DATABASE_URL)

    # With a probe, start offline so the first successful probe is a reconnect edge
    monitor = ConnectivityMonitor(connected=not cfg.CONNECTIVITY_PROBE_URL)
    env = _assemble(
        "live",
        cfg,
        preferences=SqlPreferenceStore(),
        prompts=SqlPromptStore(),
        responses=SqlResponseStore(),
        transfer=HttpImageTransfer(cfg.STORAGE_BASE_URL, cfg.STORAGE_BUCKET, cfg.STORAGE_API_KEY),
        queue_storage=_queue_storage(cfg),
        monitor=monitor,
    )
    if cfg.CONNECTIVITY_PROBE_URL:
        env.probe = HttpConnectivityProbe(
            monitor,
            cfg.CONNECTIVITY_PROBE_URL,
            cfg.CONNECTIVITY_PROBE_INTERVAL_SECONDS,
        )
    return env


def build_environment(cfg: Optional[Settings] = None) -> Environment:
    cfg = cfg or settings
    source = (cfg.DATA_SOURCE or "simulated").lower()
    logger.info("environment.selected", extra={"event_type": "environment", "data_source": source})
    if source == "live":
        return build_live_environment(cfg)
    return build_simulated_environment(cfg)


_environment: Optional[Environment] = None


def get_environment() -> Environment:
    global _environment
    if _environment is None:
        _environment = build_environment()
    return _environment


def configure_environment(env: Environment) -> Environment:
    """Install a prebuilt environment (tests, scripts)."""
    global _environment
    _environment = env
    return env


def reset_environment() -> None:
    """
    Reset the environment instance.

    FOR TESTING ONLY - forces re-initialization on next get_environment() call.
    """
    global _environment
    _environment = None
