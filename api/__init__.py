"""HTTP API for the AI Visibility Tracker."""
