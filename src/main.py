import argparse
import json
import os
import sys
import traceback

from formcoach.exercise_analysis.analyzer import FormAnalyzer
from formcoach.exercise_analysis.config_utils import default_config, get_camera_min_phase_frames, load_exercise_config
from formcoach.exercise_analysis.keypoints import ExerciseType, KeypointFrame

EXERCISE_CHOICES = [e.value for e in ExerciseType]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="formcoach exercise form analysis")
    parser.add_argument('--mode', type=str, choices=['camera', 'video', 'replay', 'serve'], default='camera',
                        help='Run mode: camera (default), video, replay or serve')
    parser.add_argument('--exercise', type=str, default='squat', choices=EXERCISE_CHOICES, help='Exercise type (default: squat)')
    parser.add_argument('--camera', type=int, default=0, help='Camera device ID')
    parser.add_argument('--video', type=str, help='Path to the video file to analyze (required if mode=video)')
    parser.add_argument('--input', type=str, help='JSON file of keypoint frames (required if mode=replay)')
    parser.add_argument('--interval', type=float, default=0.5, help='Seconds between camera polls')
    parser.add_argument('--config', type=str, help='Path to a custom exercise config JSON')
    parser.add_argument('--host', type=str, default='127.0.0.1', help='Server host (serve mode)')
    parser.add_argument('--port', type=int, default=8000, help='Server port (serve mode)')
    return parser


def load_frames(path: str):
    """Read frames from a JSON list, or an object with a "frames" list."""
    with open(path, "r") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("frames", [])
    return [KeypointFrame.from_dict(item) for item in data]


def run_replay(args) -> int:
    if not args.input:
        print("Error: --input argument is required when mode is 'replay'.")
        return 1
    if not os.path.isfile(args.input):
        print(f"Input file not found: {args.input}")
        return 1
    analyzer = FormAnalyzer(args.exercise, config_path=args.config)
    _, summary = analyzer.analyze_batch(load_frames(args.input))
    print(json.dumps(summary.to_dict(), indent=2))
    return 0


def run_live(args) -> int:
    from formcoach.trainer import VirtualTrainer

    config = load_exercise_config(args.config) if args.config else default_config()
    analyzer = FormAnalyzer(args.exercise, config=config, min_phase_frames=get_camera_min_phase_frames(config))

    if args.mode == 'video':
        if not args.video:
            print("Error: --video argument is required when mode is 'video'.")
            return 1
        if not os.path.isfile(args.video):
            print(f"Video file not found: {args.video}")
            return 1
        trainer = VirtualTrainer.from_video(analyzer, args.video)
        summary = trainer.run_sequential(fps=trainer.capture_fps())
    else:
        print("Initializing camera trainer... press Ctrl+C to stop")
        trainer = VirtualTrainer.from_camera(analyzer, args.camera)
        summary = trainer.run_polling(interval=args.interval)
    print(json.dumps(summary.to_dict(), indent=2))
    return 0


def run_server(args) -> int:
    import uvicorn
    from formcoach.api import create_app

    uvicorn.run(create_app(config_path=args.config), host=args.host, port=args.port)
    return 0


def main(argv=None) -> int:
    """Main entry point for formcoach."""
    args = build_parser().parse_args(argv)
    try:
        if args.mode == 'replay':
            return run_replay(args)
        if args.mode == 'serve':
            return run_server(args)
        return run_live(args)
    except Exception as e:
        print(f"Error running {args.mode} mode: {e}")
        traceback.print_exc()
        return 1


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
