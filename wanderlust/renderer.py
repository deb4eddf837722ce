"""Map rendering of routes, discoveries and suggestions."""

from typing import Optional

import folium
from folium import plugins

from .config import CONFIG
from .geo import Position
from .models import RouteSuggestion, SegmentRecord

CURRENT_ROUTE_COLOR = "#3388ff"
DISCOVERED_COLOR = "#00cc44"
SUGGESTED_COLOR = "#ff8800"
SAVED_ROUTE_COLOR = "#888888"


class Renderer:
    """Drawing commands issued by the tracker. The base class draws nothing."""

    def draw_current_route(self, points: list[Position]):
        pass

    def clear_current_route(self):
        pass

    def draw_discovered_segment(self, segment_id: str, record: SegmentRecord):
        pass

    def clear_discovered(self):
        pass

    def draw_suggested_route(self, route: RouteSuggestion):
        pass

    def clear_suggested_route(self):
        pass

    def draw_saved_routes(self, routes: list[dict]):
        pass

    def update_user_position(self, position: Position):
        pass

    def clear_all(self):
        self.clear_current_route()
        self.clear_discovered()
        self.clear_suggested_route()
        self.draw_saved_routes([])


class FoliumRenderer(Renderer):
    """Collects layers in memory and writes them out as a folium HTML map"""

    def __init__(self, center: Optional[Position] = None):
        self.center = center
        self.current_route: list[Position] = []
        self.discovered: dict[str, SegmentRecord] = {}
        self.suggested: Optional[RouteSuggestion] = None
        self.saved_routes: list[dict] = []
        self.user_position: Optional[Position] = None

    def draw_current_route(self, points: list[Position]):
        self.current_route = list(points)

    def clear_current_route(self):
        self.current_route = []

    def draw_discovered_segment(self, segment_id: str, record: SegmentRecord):
        self.discovered[segment_id] = record

    def clear_discovered(self):
        self.discovered = {}

    def draw_suggested_route(self, route: RouteSuggestion):
        self.suggested = route

    def clear_suggested_route(self):
        self.suggested = None

    def draw_saved_routes(self, routes: list[dict]):
        self.saved_routes = list(routes)

    def update_user_position(self, position: Position):
        self.user_position = position

    def _map_center(self) -> Position:
        if self.user_position:
            return self.user_position
        if self.center:
            return self.center
        if self.current_route:
            return self.current_route[-1]
        return Position.from_value(CONFIG["default_position"])

    def build_map(self) -> folium.Map:
        """Create an interactive map with every layer drawn so far"""
        center = self._map_center()
        m = folium.Map(location=list(center), zoom_start=16, tiles="CartoDB positron")
        folium.TileLayer("OpenStreetMap", name="OpenStreetMap").add_to(m)

        saved_layer = folium.FeatureGroup(name="Saved routes", show=False)
        for route in self.saved_routes:
            points = route.get("points") or []
            if len(points) < 2:
                continue
            folium.PolyLine(
                points,
                weight=3,
                color=SAVED_ROUTE_COLOR,
                opacity=0.5,
                popup=f"{route.get('timestamp', '')[:10]} - {route.get('distance', 0):.0f}m",
            ).add_to(saved_layer)
        saved_layer.add_to(m)

        discovered_layer = folium.FeatureGroup(name="Discovered segments", show=True)
        for record in self.discovered.values():
            folium.PolyLine(
                [list(record.start), list(record.end)],
                weight=5,
                color=DISCOVERED_COLOR,
                opacity=0.8,
                popup=folium.Popup(
                    f"<b>{record.street_name}</b><br>Length: {record.length:.0f}m",
                    max_width=200,
                ),
            ).add_to(discovered_layer)
        discovered_layer.add_to(m)

        if self.current_route and len(self.current_route) > 1:
            route_layer = folium.FeatureGroup(name="Current route", show=True)
            folium.PolyLine(
                [list(p) for p in self.current_route],
                weight=4,
                color=CURRENT_ROUTE_COLOR,
                opacity=0.9,
            ).add_to(route_layer)
            route_layer.add_to(m)

        if self.suggested:
            suggestion_layer = folium.FeatureGroup(name="Suggested route", show=True)
            folium.PolyLine(
                [list(p) for p in self.suggested.points],
                weight=4,
                color=SUGGESTED_COLOR,
                opacity=0.8,
                dash_array="10, 10",
            ).add_to(suggestion_layer)
            for i, waypoint in enumerate(self.suggested.waypoints, 1):
                folium.Marker(
                    list(waypoint.position),
                    popup=f"{i}. {waypoint.instruction}",
                    icon=plugins.BeautifyIcon(
                        number=i,
                        border_color=SUGGESTED_COLOR,
                        text_color=SUGGESTED_COLOR,
                        icon_shape="marker",
                    ),
                ).add_to(suggestion_layer)
            suggestion_layer.add_to(m)

        if self.user_position:
            folium.Marker(
                list(self.user_position),
                popup="You are here",
                icon=folium.Icon(color="blue", icon="user"),
            ).add_to(m)

        folium.LayerControl().add_to(m)
        plugins.Fullscreen().add_to(m)
        return m

    def save(self, path: str) -> str:
        self.build_map().save(path)
        return path
