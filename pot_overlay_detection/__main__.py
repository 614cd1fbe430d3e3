"""Command line entry point: ``python -m pot_overlay_detection``."""

import argparse
import sys
import threading
from typing import List, Optional

from .config_manager import ConfigManager
from .detection_session import DetectionSession
from .logging_config import setup_logging, get_logger
from .models.overlay import OverlayState
from .services.overlay_renderer import HeadlessOverlayRenderer


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pot_overlay_detection",
        description="Show an overlay in place of the camera feed while a pot is in view."
    )
    p.add_argument("--config", default=None, help="Path to the JSON config file")
    p.add_argument("--camera", type=int, default=None, help="Camera index to open")
    p.add_argument("--asset", default=None, help="Overlay image or video to show on detection")
    p.add_argument("--headless", action="store_true", help="Run without a display window")
    p.add_argument("--status-server", action="store_true", help="Serve the HTTP status API")
    p.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
    p.add_argument("--max-frames", type=int, default=None, help="Stop after this many frames")
    return p


def _start_status_server(session: DetectionSession, host: str, port: int) -> threading.Thread:
    from .web.app import OverlayStatusWebApp

    logger = get_logger("main")
    web_app = OverlayStatusWebApp(session)

    def serve():
        try:
            web_app.run(host=host, port=port)
        except OSError as e:
            logger.error(f"Status server failed to start: {e}")

    thread = threading.Thread(target=serve, name="status-server", daemon=True)
    thread.start()
    return thread


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config_manager = ConfigManager(args.config)
    overrides = {}
    if args.camera is not None:
        overrides["camera_index"] = args.camera
    if args.asset is not None:
        overrides["asset_uri"] = args.asset
    if args.log_level is not None:
        overrides["log_level"] = args.log_level.upper()
    if not config_manager.validate_config():
        print(f"Invalid configuration in {config_manager.config_path}", file=sys.stderr)
        return 1
    if overrides:
        try:
            config_manager.update_config(**overrides)
        except ValueError as e:
            print(e, file=sys.stderr)
            return 1

    config = config_manager.get_config()

    setup_logging(config.log_level, config.log_dir)
    logger = get_logger("main")
    logger.info("Starting Pot Overlay Detection System")

    renderer = HeadlessOverlayRenderer() if args.headless else None
    session = DetectionSession(config_manager, renderer=renderer)

    if args.status_server:
        _start_status_server(session, config.status_host, config.status_port)

    try:
        ok = session.run(max_frames=args.max_frames)
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
        session.stop()
        ok = session.state != OverlayState.ERROR
    finally:
        session.renderer.close()

    status = session.get_status()
    if not ok:
        logger.error(f"Detection session failed: {status['error_message']}")
        return 1

    logger.info(f"Detection session finished after {status['tick_count']} ticks")
    return 0


if __name__ == "__main__":
    sys.exit(main())
