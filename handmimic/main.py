#!/usr/bin/env python3
"""
HandMimic - Main Entry Point

Drives a robot hand model from a webcam or video of a human hand:
capture -> MediaPipe hand tracking -> retargeting pipeline.
"""

import argparse
import sys
from typing import List, Optional

import cv2

from handmimic.core import Config, FrameClock, FrameTimer, get_logger, setup_logging
from handmimic.core.errors import HandMimicError
from handmimic.kinematics.models import list_hand_models
from handmimic.retarget import HandRetargetingPipeline, RetargetFrame, load_pipeline


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Mirror a tracked human hand onto a robot hand model"
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to configuration file (defaults to config.yaml lookup)"
    )
    parser.add_argument(
        "--model", "-m",
        type=str,
        help="Robot hand model id (overrides config)"
    )
    parser.add_argument(
        "--source", "-s",
        type=str,
        help="Camera index or video file (overrides config)"
    )
    parser.add_argument(
        "--hand",
        choices=["auto", "Left", "Right"],
        help="Which tracked hand drives the robot (overrides config)"
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run without preview window"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--list-models",
        action="store_true",
        help="Print registered hand models and exit"
    )
    return parser.parse_args(argv)


def open_capture(config: Config) -> cv2.VideoCapture:
    """Open the configured webcam or video file."""
    logger = get_logger("main")
    source = config.get("video.source", "webcam")

    if source == "webcam" or str(source).isdigit():
        camera_id = int(source) if str(source).isdigit() else int(config.get("video.camera_id", 0))
        cap = cv2.VideoCapture(camera_id)
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, config.get("video.width", 1280))
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, config.get("video.height", 720))
        logger.info(f"Opened webcam {camera_id}")
    else:
        cap = cv2.VideoCapture(str(source))
        logger.info(f"Opened video: {source}")

    if not cap.isOpened():
        raise IOError(f"Failed to open video source: {source}")
    return cap


def describe_frame(frame: RetargetFrame) -> str:
    w, x, y, z = frame.root_rotation
    text = f"rot=[{w:+.3f} {x:+.3f} {y:+.3f} {z:+.3f}] scale={frame.scale:.4f}"
    if frame.tracked_hand is not None:
        text += f" hand={frame.tracked_hand.handedness}"
    if not frame.updated:
        text += " (held)"
    return text


def run(config: Config, pipeline: HandRetargetingPipeline, headless: bool) -> int:
    """Per-tick loop: capture, track, retarget, preview."""
    from handmimic.tracking.hand_tracker import HandTracker

    logger = get_logger("main")
    show_preview = not headless and config.get("visualization.show_preview", True)
    draw_landmarks = config.get("visualization.draw_landmarks", True)

    try:
        cap = open_capture(config)
    except IOError as e:
        logger.error(str(e))
        return 1

    fps = cap.get(cv2.CAP_PROP_FPS) or 30.0
    clock = FrameClock(target_fps=fps)
    timer = FrameTimer()
    tracker = HandTracker(config)
    clock.start()

    try:
        while True:
            ret, frame_bgr = cap.read()
            if not ret:
                logger.info("End of video stream")
                break

            tick = clock.tick()
            frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
            with timer.measure():
                results = tracker.process(frame_rgb, tick.timestamp)
                frame = pipeline.process(results, dt=tick.delta)

            if tick.frame_number % 30 == 0:
                logger.info(
                    f"Frame {tick.frame_number}: {describe_frame(frame)} "
                    f"(processing {timer.average * 1000:.1f} ms, {timer.fps:.1f} fps)"
                )
            else:
                logger.debug(f"Frame {tick.frame_number}: {describe_frame(frame)}")

            if show_preview:
                display = frame_bgr
                if draw_landmarks and results:
                    display = cv2.cvtColor(
                        tracker.draw_results(frame_rgb, results), cv2.COLOR_RGB2BGR
                    )
                cv2.putText(display, describe_frame(frame), (10, 30),
                            cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 255, 0), 2)
                cv2.imshow("HandMimic", display)

                key = cv2.waitKey(1) & 0xFF
                if key in (ord("q"), 27):
                    break
                if key == ord("r"):
                    pipeline.reset()
                    logger.info("Pipeline reset")
    except KeyboardInterrupt:
        logger.info("Interrupted")
    finally:
        tracker.close()
        cap.release()
        pipeline.unload()
        if show_preview:
            cv2.destroyAllWindows()

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main application entry point."""
    args = parse_args(argv)

    try:
        config = Config(args.config)
    except FileNotFoundError:
        print(f"Error: Config file not found: {args.config}")
        return 1

    log_level = "DEBUG" if args.debug else config.get("app.log_level", "INFO")
    setup_logging(level=log_level)
    logger = get_logger("main")

    if args.list_models:
        for model_id in list_hand_models():
            print(model_id)
        return 0

    logger.info("=" * 50)
    logger.info(f"HandMimic v{config.get('app.version', '0.1.0')}")
    logger.info("=" * 50)

    if args.model:
        config.set("skeleton.model", args.model)
    if args.source:
        config.set("video.source", args.source)
        logger.info(f"Source override: {args.source}")
    if args.hand:
        config.set("tracking.hand", args.hand)

    try:
        pipeline = load_pipeline(config.get("skeleton.model"), config)
    except (HandMimicError, KeyError):
        return 1

    return run(config, pipeline, args.headless)


if __name__ == "__main__":
    sys.exit(main())
