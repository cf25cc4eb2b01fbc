"""Pose-estimation provider adapters. The MediaPipe adapter needs the `camera` extra."""
