"""Overlay visibility state machine."""

from typing import Callable, List, Optional

from .interfaces import OverlayRendererInterface, Unsubscribe
from .error_handler import AssetLoadFailure, ErrorSeverity, global_error_handler
from ..models.overlay import OverlayState
from ..logging_config import get_logger

logger = get_logger("overlay_controller")

TransitionListener = Callable[[OverlayState, OverlayState], None]


class OverlayController:
    """Decides whether the live video or the overlay asset is shown.

    Transitions::

        LOADING --camera_ready--> LIVE_FEED
        LIVE_FEED --confirmed--> OVERLAY_VISIBLE
        OVERLAY_VISIBLE --not confirmed--> LIVE_FEED
        LOADING / LIVE_FEED --fail--> ERROR   (terminal)

    Asset load callbacks from the renderer only update ``asset_loaded`` and
    ``asset_error``. With ``overlay_required`` an asset error is fatal; if it
    arrives while the overlay is visible it takes effect on the next falling
    edge of the confirmation signal.
    """

    def __init__(self,
                 renderer: OverlayRendererInterface,
                 asset_uri: str,
                 overlay_required: bool = False):
        self.renderer = renderer
        self.asset_uri = asset_uri
        self.overlay_required = overlay_required

        self.state = OverlayState.LOADING
        self.error_message: Optional[str] = None
        self.asset_loaded = False
        self.asset_error: Optional[str] = None
        self.transition_count = 0

        self._pending_fatal: Optional[str] = None
        self._listeners: List[TransitionListener] = []
        self._stop_listeners: List[Callable[[], None]] = []
        self._subscriptions: List[Unsubscribe] = [
            renderer.on_asset_loaded(self._handle_asset_loaded),
            renderer.on_asset_error(self._handle_asset_error),
        ]

        global_error_handler.register_component("overlay_controller")

    @property
    def is_terminal(self) -> bool:
        return self.state == OverlayState.ERROR

    def add_transition_listener(self, listener: TransitionListener) -> None:
        self._listeners.append(listener)

    def add_stop_listener(self, listener: Callable[[], None]) -> None:
        """Called once when the controller enters ERROR and sampling must stop."""
        self._stop_listeners.append(listener)

    def camera_ready(self) -> None:
        if self.state != OverlayState.LOADING:
            logger.debug(f"Ignoring camera ready in state {self.state.value}")
            return
        self._transition(OverlayState.LIVE_FEED)

    def update(self, confirmed: bool) -> bool:
        """Apply the confirmation signal for this tick. Returns True on a transition."""
        if self.state == OverlayState.LIVE_FEED and confirmed:
            self._transition(OverlayState.OVERLAY_VISIBLE)
            return True
        if self.state == OverlayState.OVERLAY_VISIBLE and not confirmed:
            if self._pending_fatal:
                self._enter_error(self._pending_fatal)
            else:
                self._transition(OverlayState.LIVE_FEED)
            return True
        return False

    def fail(self, message: str) -> None:
        """Enter the terminal ERROR state with a user facing message."""
        if self.state == OverlayState.ERROR:
            logger.debug(f"Already in ERROR, keeping first message; ignoring: {message}")
            return
        self._enter_error(message)

    def teardown(self) -> None:
        """Drop renderer subscriptions."""
        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions.clear()
        self._listeners.clear()
        self._stop_listeners.clear()

    def get_status(self) -> dict:
        return {
            "state": self.state.value,
            "asset_uri": self.asset_uri,
            "asset_loaded": self.asset_loaded,
            "asset_error": self.asset_error,
            "error_message": self.error_message,
            "transition_count": self.transition_count
        }

    def _handle_asset_loaded(self, uri: str) -> None:
        logger.info(f"Overlay asset loaded: {uri}")
        self.asset_loaded = True
        self.asset_error = None

    def _handle_asset_error(self, uri: str, error: Exception) -> None:
        message = f"Failed to load overlay asset {uri}: {error}"
        self.asset_loaded = False
        self.asset_error = message
        global_error_handler.handle_error(
            "overlay_controller",
            error if isinstance(error, AssetLoadFailure) else AssetLoadFailure(message),
            ErrorSeverity.HIGH if self.overlay_required else ErrorSeverity.LOW
        )

        if not self.overlay_required:
            return
        if self.state in (OverlayState.LOADING, OverlayState.LIVE_FEED):
            self._enter_error(message)
        elif self.state == OverlayState.OVERLAY_VISIBLE:
            self._pending_fatal = message

    def _enter_error(self, message: str) -> None:
        self.error_message = message
        self._transition(OverlayState.ERROR)

    def _transition(self, new_state: OverlayState) -> None:
        old_state = self.state
        self.state = new_state
        self.transition_count += 1
        logger.info(f"Overlay state {old_state.value} -> {new_state.value}")

        if new_state == OverlayState.LIVE_FEED:
            self.renderer.hide_asset()
            self.renderer.show_video()
        elif new_state == OverlayState.OVERLAY_VISIBLE:
            self.renderer.hide_video()
            self.renderer.show_asset(self.asset_uri)
        elif new_state == OverlayState.ERROR:
            logger.error(f"Overlay pipeline stopped: {self.error_message}")
            self.renderer.hide_asset()
            self.renderer.show_error(self.error_message or "Unknown error")
            for listener in list(self._stop_listeners):
                listener()

        for listener in list(self._listeners):
            listener(old_state, new_state)
