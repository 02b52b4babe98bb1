"""Obstacle-field steering from 2D LiDAR scans and projection of 3D LiDAR points into a camera image."""

__version__ = "0.1.0"