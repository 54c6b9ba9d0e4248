"""Routing: compiled route table with O(path-depth) matching.

Routes are registered during setup and compiled into an immutable
lookup structure when the app freezes.
"""

from sprout.routing.route import VERBS, PathSegment, Route, RouteMatch
from sprout.routing.router import Router, parse_path

__all__ = ["VERBS", "PathSegment", "Route", "RouteMatch", "Router", "parse_path"]
