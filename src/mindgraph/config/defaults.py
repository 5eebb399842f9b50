"""
mindgraph.config.defaults - Default configuration values
"""

DEFAULT_CONFIG = {
    "layout": {
        "start_x": 100.0,
        "start_y": 300.0,
        "horizontal_spacing": 500.0,
        "vertical_gap": 40.0,
        "base_node_height": 60.0,
    },
    "context": {
        "lineage_limit": 6,
        "sibling_limit": 6,
        "child_limit": 6,
        "recent_turns": 4,
    },
    "history": {
        # 0 keeps every snapshot
        "max_entries": 0,
    },
    "deletion": {
        "protect_roots": True,
    },
    "storage": {
        "key": "mindgraph-flow-state.v1",
        "conversations_key": "mindgraph-ai-conversations.v1",
        "directory": ".mindgraph",
    },
    "server": {
        "host": "127.0.0.1",
        "port": 5050,
    },
}
