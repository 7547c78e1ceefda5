"""Dashboard state and the controller that drives it.

The state is a frozen dataclass; every change goes through a pure
``with_*`` transition that returns a new state. The controller performs
the side effects around those transitions: fetching conditions, and
writing logs/checklist through to the local store after each change.

Fetches can overlap (two refreshes for different locations, say). Each
fetch is tagged with a request id per slot and only the latest id for
that slot may update the state; older responses are dropped.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Awaitable, Callable, Optional
from zoneinfo import ZoneInfo

from ..config import settings
from .errors import (
    GeolocationError,
    MapUnavailableError,
    UnknownLocationError,
    WeatherUnavailableError,
)
from .local_store import LocalStore
from .locations import LocationOption, acquire_position, find_location, location_options
from .open_meteo import LocationConditions, fetch_city_snapshot, fetch_location_conditions
from .pollen_types import PollenTypeStatus, rank_pollen_types
from .risk_engine import (
    ForecastDay,
    RiskResult,
    WeatherSnapshot,
    build_forecast,
    estimate_snapshot_risk,
)
from .spatial_risk import RiskMap, build_risk_map
from .symptom_history import (
    SymptomLog,
    completion_rate,
    default_actions,
    severity_trend,
    toggle_action,
    upsert_log,
    weekly_average,
)

logger = logging.getLogger(__name__)

LOCATION_SLOT = "location"
MAP_SLOT = "map"


@dataclass(frozen=True)
class DashboardState:
    selected_id: str
    custom_location: Optional[LocationOption] = None
    snapshot: Optional[WeatherSnapshot] = None
    today_risk: Optional[RiskResult] = None
    forecast: list[ForecastDay] = field(default_factory=list)
    pollen_types: list[PollenTypeStatus] = field(default_factory=list)
    logs: list[SymptomLog] = field(default_factory=list)
    actions: dict[str, bool] = field(default_factory=default_actions)
    risk_map: Optional[RiskMap] = None
    is_loading: bool = False
    error: Optional[str] = None
    map_error: Optional[str] = None


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

def with_stored_state(
    state: DashboardState, logs: list[SymptomLog], actions: dict[str, bool],
) -> DashboardState:
    return replace(state, logs=logs, actions=actions)


def with_location_selected(state: DashboardState, location_id: str) -> DashboardState:
    return replace(state, selected_id=location_id, error=None)


def with_custom_location(state: DashboardState, location: LocationOption) -> DashboardState:
    return replace(state, custom_location=location, selected_id=location.id, error=None)


def with_refresh_started(state: DashboardState) -> DashboardState:
    return replace(state, is_loading=True, error=None)


def with_conditions(
    state: DashboardState,
    snapshot: WeatherSnapshot,
    today_risk: RiskResult,
    forecast: list[ForecastDay],
    pollen_types: list[PollenTypeStatus],
) -> DashboardState:
    return replace(
        state,
        snapshot=snapshot,
        today_risk=today_risk,
        forecast=forecast,
        pollen_types=pollen_types,
        is_loading=False,
        error=None,
    )


def with_refresh_failed(state: DashboardState, message: str) -> DashboardState:
    """Record the failure; previously shown data stays as it was."""
    return replace(state, is_loading=False, error=message)


def with_geolocation_failed(state: DashboardState, message: str) -> DashboardState:
    return replace(state, error=message)


def with_log_submitted(state: DashboardState, entry: SymptomLog) -> DashboardState:
    return replace(state, logs=upsert_log(state.logs, entry))


def with_action_toggled(state: DashboardState, key: str) -> DashboardState:
    return replace(state, actions=toggle_action(state.actions, key))


def with_map(state: DashboardState, risk_map: RiskMap) -> DashboardState:
    return replace(state, risk_map=risk_map, map_error=None)


def with_map_failed(state: DashboardState, message: str) -> DashboardState:
    return replace(state, map_error=message)


# ---------------------------------------------------------------------------
# Request ids
# ---------------------------------------------------------------------------

class RequestTracker:
    """Hands out increasing request ids per slot and tells whether one is still the latest."""

    def __init__(self):
        self._next_id = 0
        self._latest: dict[str, int] = {}

    def issue(self, slot: str) -> int:
        self._next_id += 1
        self._latest[slot] = self._next_id
        return self._next_id

    def is_current(self, slot: str, request_id: int) -> bool:
        return self._latest.get(slot) == request_id


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------

def _reference_now() -> datetime:
    return datetime.now(ZoneInfo(settings.reference_timezone))


class DashboardController:
    """Owns the dashboard state for the single local user."""

    def __init__(
        self,
        store: LocalStore,
        fetch_conditions: Callable[[float, float], Awaitable[LocationConditions]] = fetch_location_conditions,
        fetch_city: Callable[[float, float], Awaitable[WeatherSnapshot]] = fetch_city_snapshot,
        clock: Callable[[], datetime] = _reference_now,
        default_location: Optional[str] = None,
    ):
        self._store = store
        self._fetch_conditions = fetch_conditions
        self._fetch_city = fetch_city
        self._clock = clock
        self._tracker = RequestTracker()
        self.state = DashboardState(selected_id=default_location or settings.default_location)

    # -- lifecycle ---------------------------------------------------------

    def start(self) -> None:
        """Load persisted logs and checklist once."""
        logs = self._store.load_logs()
        actions = self._store.load_actions()
        self.state = with_stored_state(self.state, logs, actions)
        logger.info("Dashboard loaded %d symptom logs", len(logs))

    def today(self) -> date:
        """Today's date in the reference timezone."""
        return self._clock().date()

    # -- derived values ----------------------------------------------------

    @property
    def selected_location(self) -> LocationOption:
        try:
            return find_location(self.state.selected_id, self.state.custom_location)
        except UnknownLocationError:
            return location_options(self.state.custom_location)[0]

    @property
    def options(self) -> list[LocationOption]:
        return location_options(self.state.custom_location)

    @property
    def weekly_average(self) -> Optional[float]:
        return weekly_average(self.state.logs)

    @property
    def trend(self) -> Optional[float]:
        return severity_trend(self.state.logs)

    @property
    def completion_rate(self) -> int:
        return completion_rate(self.state.actions)

    # -- location ----------------------------------------------------------

    async def select_location(self, location_id: str) -> DashboardState:
        find_location(location_id, self.state.custom_location)
        self.state = with_location_selected(self.state, location_id)
        return await self.refresh()

    async def locate(
        self, locator: Callable[[], Awaitable[tuple[float, float]]],
    ) -> DashboardState:
        """Acquire the current position and switch to it.

        On failure the previous location stays selected and the error is
        recorded before re-raising.
        """
        try:
            location = await acquire_position(locator, settings.geolocation_timeout_sec)
        except GeolocationError as exc:
            self.state = with_geolocation_failed(self.state, str(exc))
            raise
        self.state = with_custom_location(self.state, location)
        return await self.refresh()

    async def refresh(self) -> DashboardState:
        """Fetch conditions for the selected location and rescore.

        Raises WeatherUnavailableError when this refresh is still the
        latest and it failed; unexpected errors while fetching or scoring
        are reported the same way so the loading flag never sticks. A
        superseded refresh returns the current state untouched.
        """
        location = self.selected_location
        request_id = self._tracker.issue(LOCATION_SLOT)
        self.state = with_refresh_started(self.state)

        try:
            conditions = await self._fetch_conditions(location.lat, location.lon)
            if not self._tracker.is_current(LOCATION_SLOT, request_id):
                logger.debug("Dropping stale conditions for %s", location.id)
                return self.state
            today = self.today()
            today_risk = estimate_snapshot_risk(today, conditions.snapshot)
            forecast = build_forecast(conditions.snapshot, conditions.daily)
            pollen_types = rank_pollen_types(today.month, conditions.snapshot, today_risk.score)
        except Exception as exc:
            if not self._tracker.is_current(LOCATION_SLOT, request_id):
                logger.debug("Dropping failed stale refresh for %s", location.id)
                return self.state
            if isinstance(exc, WeatherUnavailableError):
                failure = exc
            else:
                logger.exception("Refresh for %s failed unexpectedly", location.id)
                failure = WeatherUnavailableError()
            self.state = with_refresh_failed(self.state, str(failure))
            if failure is exc:
                raise
            raise failure from exc

        self.state = with_conditions(
            self.state,
            snapshot=conditions.snapshot,
            today_risk=today_risk,
            forecast=forecast,
            pollen_types=pollen_types,
        )
        return self.state

    def pollen_ranking(self) -> list[PollenTypeStatus]:
        """Pollen types for the current state; works before any snapshot has arrived."""
        if self.state.pollen_types:
            return self.state.pollen_types
        overall = self.state.today_risk.score if self.state.today_risk else 0
        return rank_pollen_types(self.today().month, self.state.snapshot, overall)

    # -- map ---------------------------------------------------------------

    async def refresh_map(self) -> DashboardState:
        """Rebuild the regional map. Raises MapUnavailableError when every city failed."""
        request_id = self._tracker.issue(MAP_SLOT)
        try:
            risk_map = await build_risk_map(self._fetch_city, self.today())
        except MapUnavailableError as exc:
            if self._tracker.is_current(MAP_SLOT, request_id):
                self.state = with_map_failed(self.state, str(exc))
                raise
            return self.state

        if self._tracker.is_current(MAP_SLOT, request_id):
            self.state = with_map(self.state, risk_map)
        return self.state

    # -- logs and checklist ------------------------------------------------

    def submit_log(self, severity: int, took_medicine: bool, memo: str) -> DashboardState:
        """Record today's symptoms, replacing any earlier entry for today."""
        entry = SymptomLog(
            date=self.today().isoformat(),
            severity=severity,
            took_medicine=took_medicine,
            memo=memo.strip(),
        )
        self.state = with_log_submitted(self.state, entry)
        self._store.save_logs(self.state.logs)
        return self.state

    def toggle_action(self, key: str) -> DashboardState:
        self.state = with_action_toggled(self.state, key)
        self._store.save_actions(self.state.actions)
        return self.state


# Shared controller for the web app (set up in main.lifespan)
_controller: Optional[DashboardController] = None


def set_controller(controller: DashboardController) -> None:
    global _controller
    _controller = controller


def get_controller() -> DashboardController:
    if _controller is None:
        raise RuntimeError("Dashboard controller not initialised; is the web app running?")
    return _controller
