"""Application entrypoint for the QR scanner (OpenCV UI)."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional

import cv2
import numpy as np

from qrscan.config import Config, load_config
from qrscan.core.actions import ActionBuilder
from qrscan.core.camera import OpenCvQrScanner, corner_polygon, scan_image
from qrscan.core.classifier import detect_kind
from qrscan.core.entities import CandidateSet, Notice, ScanResult, Size
from qrscan.infra import configure_logging, install_exception_hook
from qrscan.services import CommandScheduler, EventBus, HistoryStore, SettingsStore
from qrscan.state_machine import DetectionStreamProcessor, DetectionWindow, ScanContext, ScanEngine, ScannerGate

logger = logging.getLogger("app.main")

_OVERLAY_COLOR = (234, 242, 0)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="QR code scanner console interface (cv2).")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("config/app.yaml"),
        help="Path to the YAML/JSON configuration file.",
    )
    parser.add_argument(
        "--image",
        type=Path,
        default=None,
        help="Scan a still image instead of opening the camera.",
    )
    parser.add_argument(
        "--no-window",
        action="store_true",
        help="Run headless, without an OpenCV window.",
    )
    return parser.parse_args(argv)


def draw_overlay(frame: np.ndarray, candidates: CandidateSet, status: str) -> np.ndarray:
    annotated = frame.copy()
    for index, det in enumerate(candidates, start=1):
        polygon = corner_polygon(det)
        if polygon is not None:
            cv2.polylines(annotated, [polygon], True, _OVERLAY_COLOR, 2)
        if det.bounds is None:
            continue
        x, y = int(det.bounds.origin.x), int(det.bounds.origin.y)
        label = f"{index}: {detect_kind(det.payload).label}"
        cv2.putText(
            annotated,
            label,
            (x, max(0, y - 10)),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.5,
            _OVERLAY_COLOR,
            1,
            cv2.LINE_AA,
        )
    cv2.putText(annotated, status, (10, 24), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 1, cv2.LINE_AA)
    return annotated


def describe_result(result: ScanResult) -> str:
    if result.parsed is None:
        return f"Unreadable code {result.detection.payload!r}: {result.error}"
    parsed = result.parsed
    lines = [f"[{parsed.kind.value}] {parsed.title}" + (f" - {parsed.subtitle}" if parsed.subtitle else "")]
    for key, value in parsed.fields.items():
        if value not in ("", None):
            lines.append(f"  {key}: {value}")
    for action in parsed.actions:
        lines.append(f"  > {action.label} ({action.effect.value})")
    return "\n".join(lines)


def build_processor(config: Config, scanner: Optional[OpenCvQrScanner]) -> DetectionStreamProcessor:
    settings = SettingsStore(config.storage.settings_path)
    settings.load()
    history = HistoryStore(config.storage.history_path, limit=config.storage.history_limit)
    width, height = config.viewport()
    context = ScanContext(
        scanner=ScannerGate(scanner),
        settings=settings,
        window=DetectionWindow(config.scanner.window_s),
        viewport=Size(width, height),
        history=history,
        builder=ActionBuilder(config.actions),
    )
    return DetectionStreamProcessor(context)


def run_image(config: Config, image_path: Path) -> int:
    processor = build_processor(config, scanner=None)
    bus = EventBus()
    engine = ScanEngine(
        processor,
        bus,
        CommandScheduler(bus),
        tick_s=config.scanner.tick_s,
        image_scanner=lambda path: scan_image(path, config.scanner.format_tag),
    )
    results: list[ScanResult] = []
    notices: list[Notice] = []
    processor.context.add_result_listener(results.append)
    processor.context.add_notice_listener(notices.append)

    engine.start()
    try:
        engine.scan_image(image_path)
        deadline = time.monotonic() + 2.0 + config.scanner.window_s
        while not results and not notices and time.monotonic() < deadline:
            time.sleep(config.scanner.tick_s)
        if not results and processor.context.candidates:
            # Multi-code mode waits for a tap; pick the first candidate.
            engine.select(processor.context.candidates.detections[0])
            time.sleep(config.scanner.tick_s * 2)
    finally:
        engine.stop()

    for notice in notices:
        print(notice.message, file=sys.stderr)
    for result in results:
        print(describe_result(result))
    return 0 if results else 2


def run_camera(config: Config, no_window: bool) -> int:
    engine: Optional[ScanEngine] = None

    def _forward(detection) -> None:
        if engine is not None:
            engine.submit_detection(detection)

    scanner = OpenCvQrScanner(config.camera, _forward, config.scanner.format_tag)
    processor = build_processor(config, scanner)
    bus = EventBus()
    engine = ScanEngine(processor, bus, CommandScheduler(bus), tick_s=config.scanner.tick_s)

    processor.context.add_result_listener(lambda result: print(describe_result(result), flush=True))
    processor.context.add_notice_listener(lambda notice: print(notice.message, file=sys.stderr, flush=True))

    window_name = config.app.window_name
    display_enabled = not no_window
    if display_enabled:
        try:
            cv2.namedWindow(window_name, cv2.WINDOW_NORMAL)
        except cv2.error as exc:
            logger.warning("OpenCV GUI unavailable (%s). Falling back to headless mode.", exc)
            display_enabled = False

    scanner.start()
    engine.start()
    try:
        while True:
            if not display_enabled:
                time.sleep(0.05)
                continue

            frame = scanner.latest_frame()
            if frame is not None:
                candidates = processor.context.candidates
                if config.app.enable_overlay:
                    frame = draw_overlay(frame, candidates, processor.status_text)
                cv2.imshow(window_name, frame)

            key = cv2.waitKey(1) & 0xFF
            if key in (27, ord("q")):
                logger.info("Exit requested by user input.")
                break
            if key == ord("r"):
                engine.reset("scan again")
            elif ord("1") <= key <= ord("9"):
                candidates = processor.context.candidates.detections
                index = key - ord("1")
                if index < len(candidates):
                    engine.select(candidates[index])
    except KeyboardInterrupt:
        logger.info("Interrupted by user (Ctrl+C).")
    finally:
        engine.stop()
        scanner.close()
        if display_enabled:
            cv2.destroyAllWindows()
        logger.info("Shutdown complete.")
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    try:
        config = load_config(args.config) if args.config.exists() else Config()
    except Exception as exc:
        print(f"Unable to read configuration: {exc}", file=sys.stderr)
        sys.exit(1)

    configure_logging(config.logging)
    install_exception_hook()
    logger.info("Configuration loaded from %s", args.config)

    if args.image is not None:
        sys.exit(run_image(config, args.image))
    sys.exit(run_camera(config, no_window=args.no_window))


if __name__ == "__main__":
    main()
