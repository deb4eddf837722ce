"""Configuration settings for Wanderlust."""

import json

CONFIG = {
    # Street cache
    "search_radius": 200,  # meters - area fetched around the user while tracking
    "bbox_buffer": 0.7,  # fraction of the cached bbox that never triggers a refetch
    "meters_per_degree": 111000,  # planar approximation used for snapping
    "earth_radius": 6371000,  # meters
    "road_types": [
        "residential",
        "tertiary",
        "secondary",
        "primary",
        "trunk",
        "unclassified",
        "living_street",
    ],
    "unnamed_road": "Unnamed Road",
    # Overpass
    "overpass_url": "https://overpass-api.de/api/interpreter",
    "overpass_timeout": 10,  # seconds, passed to the Overpass query
    "overpass_request_timeout": 30,  # seconds, HTTP timeout on our side
    # Snapping
    "current_segment_bias": 5,  # meters - stickiness of the segment being walked
    "snap_threshold": 25,  # meters - farther than this counts as off-road
    # Rewards
    "xp_per_meter": 0.2,
    "level_xp_step": 50,  # level n needs step * n * (n - 1) XP
    # Route suggestion
    "suggest_search_radius_km": 2,
    "suggest_target_km": 2,
    "minutes_per_km": 12,
    "linear_target_fraction": 0.7,
    "continuing_max_distance": 300,  # meters from current endpoint to next segment start
    "direction_weight": 0.7,
    "proximity_weight": 0.3,
    "walk_gap_threshold": 50,  # meters - gaps above this get a "walk" waypoint
    "start_density_radius": 400,  # meters - neighbours counted for the starting segment
    "out_and_back_candidates": 5,
    "out_and_back_max_segments": 4,
    "out_and_back_cone": 60,  # degrees either side of the first candidate's bearing
    "cluster_radius": 300,  # meters
    "cluster_max_leg": 200,  # meters
    "cluster_target_fraction": 0.8,
    "score_distance_weight": 0.4,
    "score_segment_weight": 0.4,
    "score_xp_weight": 0.2,
    # Position source
    "gps_poll_interval": 3,  # seconds
    "gps_timeout": 30,  # seconds
    "default_position": [37.7749, -122.4194],  # San Francisco
    # Storage
    "db_path": "wanderlust.db",
}


def load_config(path: str) -> dict:
    """Merge a JSON file of overrides into CONFIG and return it."""
    with open(path) as f:
        overrides = json.load(f)
    unknown = sorted(set(overrides) - set(CONFIG))
    if unknown:
        print(f"Ignoring unknown config keys: {', '.join(unknown)}")
    for key in set(overrides) & set(CONFIG):
        CONFIG[key] = overrides[key]
    return CONFIG
