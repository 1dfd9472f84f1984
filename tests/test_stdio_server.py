"""
Tests for the stdio launcher's CLI overrides.
"""
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tools.stdio_server import apply_overrides, load_server, parse_args


def test_flags_override_env(tmp_path, monkeypatch):
    monkeypatch.setenv("SVK_PROJECT_DIR", "/somewhere/else")
    monkeypatch.delenv("SVK_KNOWLEDGE_ROOT", raising=False)

    args = parse_args(["--project-dir", str(tmp_path), "--knowledge-root", str(tmp_path / "kb")])
    apply_overrides(args.project_dir, args.knowledge_root)

    assert os.environ["SVK_PROJECT_DIR"] == str(tmp_path)
    assert os.environ["SVK_KNOWLEDGE_ROOT"] == str(tmp_path / "kb")


def test_no_flags_keep_env(monkeypatch):
    monkeypatch.setenv("SVK_PROJECT_DIR", "/from/env")

    args = parse_args([])
    apply_overrides(args.project_dir, args.knowledge_root)

    assert os.environ["SVK_PROJECT_DIR"] == "/from/env"


def test_load_server_returns_registered_instance():
    from svk_mcp.server import mcp

    assert load_server() is mcp
