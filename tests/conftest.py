"""Shared test fixtures and utilities."""

import pytest


@pytest.fixture
def write_file(tmp_path):
    """Factory fixture to write files relative to tmp_path."""
    def _write(path: str, content: str = "test content"):
        file_path = tmp_path / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)
        return file_path
    return _write


@pytest.fixture
def client_tree(tmp_path):
    """Create a small game client layout in tmp_path/client."""
    root = tmp_path / "client"
    files = {
        "client.jar": "jar bytes",
        "options.txt": "fov:70",
        "libraries/lwjgl/lwjgl.jar": "lwjgl",
        "libraries/gson.jar": "gson",
        "assets/sound.ogg": "ogg",
        "logs/latest.log": "started",
    }
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root
