"""
Filter Cam: camera preview with pixel filters and capture-to-storage upload.

Starts the preview loop, connects the default camera and serves the web UI
and API.

Usage:
    python src/main.py --config config/config.yaml --display

Arguments:
    --config: Path to configuration file
    --display: Show the filtered preview in an OpenCV window
    --no-autostart: Do not connect the camera on startup
"""

import os
import sys
import argparse
import logging
import threading
from typing import Any, Dict, Optional, Tuple

import uvicorn
import yaml
from dotenv import load_dotenv

from cloud.uploader import Uploader, create_uploader
from cloud.utils import apply_env_overrides, check_upload_config
from models.filter_mode import FilterMode
from observation.factory import SourceKind
from ops.logging import setup_logging
from pipeline.capture import CaptureConfig
from pipeline.preview import PreviewConfig, PreviewLoop
from runtime.context import Session
from web.app import create_app


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)

    Raises:
        yaml.YAMLError: A config file is not valid YAML.
    """
    config_dir = os.path.dirname(config_path)
    base_path = os.path.join(config_dir, "default.yaml")
    merged: Dict[str, Any] = _read_yaml(base_path) if os.path.exists(base_path) else {}

    local_overrides_path = os.path.join(config_dir, "config.yaml")
    if os.path.exists(local_overrides_path):
        merged = _deep_merge(merged, _read_yaml(local_overrides_path))

    if os.path.exists(config_path) and os.path.abspath(config_path) not in (
        os.path.abspath(local_overrides_path),
        os.path.abspath(base_path),
    ):
        merged = _deep_merge(merged, _read_yaml(config_path))

    return merged


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'preview', 'capture', 'upload', 'server', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    camera = config.get('camera', {}) or {}
    source = camera.get('source', 'device')
    if source not in [k.value for k in SourceKind]:
        return False, "camera.source must be one of: device, droidcam, ipcam"
    if source == 'ipcam' and not camera.get('url'):
        return False, "camera.url is required when camera.source is 'ipcam'"
    if 'device_id' in camera:
        device_id = camera['device_id']
        if not isinstance(device_id, int) or device_id < 0:
            return False, "camera.device_id must be a non-negative integer"
    if 'resolution' in camera:
        resolution = camera['resolution']
        if not isinstance(resolution, list) or len(resolution) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in resolution):
            return False, "camera.resolution values must be positive integers"

    preview = config.get('preview', {}) or {}
    fps = preview.get('target_fps', 30)
    if not isinstance(fps, (int, float)) or fps <= 0:
        return False, "preview.target_fps must be a positive number"
    initial_filter = preview.get('filter', 'none')
    try:
        FilterMode.parse(initial_filter, strict=True)
    except ValueError:
        return False, f"preview.filter must be one of: {', '.join(m.value for m in FilterMode)}"

    capture = config.get('capture', {}) or {}
    quality = capture.get('jpeg_quality', 92)
    if not isinstance(quality, int) or not (0 <= quality <= 100):
        return False, "capture.jpeg_quality must be an integer between 0 and 100"

    upload = config.get('upload', {}) or {}
    if (upload.get('backend') or 's3') not in ('s3', 'gcs'):
        return False, "upload.backend must be one of: s3, gcs"

    server = config.get('server', {}) or {}
    port = server.get('port', 3000)
    if not isinstance(port, int) or not (0 < port < 65536):
        return False, "server.port must be an integer between 1 and 65535"

    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def build_uploader(upload_cfg: Dict[str, Any]) -> Optional[Uploader]:
    """Create the configured uploader, or None (captures disabled) if it is incomplete."""
    apply_env_overrides(upload_cfg)
    if not check_upload_config(upload_cfg):
        logging.warning("Upload backend not configured, captures are disabled")
        return None
    try:
        return create_uploader(upload_cfg)
    except ValueError as e:
        logging.error(f"Failed to initialize uploader: {e}")
        return None


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Filter Cam')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--display', action='store_true',
                        help='Show the filtered preview in an OpenCV window')
    parser.add_argument('--no-autostart', action='store_true',
                        help='Do not connect the camera on startup')
    parser.add_argument('--host', type=str, default=None,
                        help='Web server bind address (overrides server.host)')
    parser.add_argument('--port', type=int, default=None,
                        help='Web server port (overrides server.port)')
    args = parser.parse_args()

    load_dotenv()

    try:
        config = load_config(args.config)
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config.get('log_path'), config['log_level'])
    logging.info("Starting Filter Cam")

    camera_cfg = config['camera']
    preview_cfg = config['preview']
    server_cfg = config['server']

    session = Session(
        camera_cfg=camera_cfg,
        filter_mode=FilterMode.parse(preview_cfg.get('filter')),
    )
    uploader = build_uploader(config['upload'])

    app = create_app(
        session,
        uploader=uploader,
        capture_config=CaptureConfig.from_config(config['capture']),
        static_dir=server_cfg.get('static_dir', 'public'),
    )

    host = args.host or server_cfg.get('host', '0.0.0.0')
    port = args.port or server_cfg.get('port', 3000)

    def run_web_app():
        uvicorn.run(app, host=host, port=port, log_level="info")

    web_thread = threading.Thread(target=run_web_app, daemon=True)
    web_thread.start()
    logging.info(f"Web interface started on port {port}")

    if not args.no_autostart:
        try:
            session.start_source(camera_cfg.get('source', 'device'), url=camera_cfg.get('url'))
        except (ValueError, RuntimeError) as e:
            logging.error(f"Error initializing camera: {e}. Use the web UI to start the camera.")

    loop = PreviewLoop(
        session,
        PreviewConfig(
            target_fps=float(preview_cfg.get('target_fps', 30)),
            stats_log_interval=float(preview_cfg.get('stats_log_interval', 60)),
            display=args.display,
        ),
    )

    try:
        # Runs on the main thread so an OpenCV window stays on the GUI thread
        loop.run()
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    finally:
        loop.stop()
        session.stop_source()
        logging.info("Filter Cam stopped")


if __name__ == "__main__":
    main()
