"""
Tests for the knowledge base registry, catalog and reader.

The reader must fail closed on any path that could leave the base root.
"""
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from svk_mcp.errors import PathTraversalError, UnknownKnowledgeBaseError
from svk_mcp.knowledge import list_knowledge, read_knowledge


@pytest.fixture
def kb_root(tmp_path):
    sos = tmp_path / "stronghold-of-security" / "knowledge-base"
    (sos / "patterns" / "cpi").mkdir(parents=True)
    (sos / "patterns" / "access-control").mkdir(parents=True)
    (sos / "PATTERNS_INDEX.md").write_text("# Patterns Index\n", encoding="utf-8")
    (sos / "patterns" / "cpi" / "EP-042.md").write_text("# EP-042 Arbitrary CPI\n", encoding="utf-8")
    (sos / "patterns" / "access-control" / "EP-001.md").write_text("# EP-001\n", encoding="utf-8")
    (sos / "core").mkdir()
    (sos / "core" / "checklist.md").write_text("# Checklist\n", encoding="utf-8")

    gl = tmp_path / "grand-library" / "resources"
    (gl / "domain-packs" / "defi").mkdir(parents=True)
    (gl / "domain-packs" / "defi" / "INDEX.md").write_text("# DeFi\n", encoding="utf-8")
    (gl / "domain-packs" / "nft").mkdir(parents=True)
    (gl / "INDEX.md").write_text("# GL Index\n", encoding="utf-8")

    docs = tmp_path / "Documents"
    docs.mkdir()
    (docs / "VISION.md").write_text("# Vision\n", encoding="utf-8")

    # Something outside every knowledge base
    (tmp_path / "secret.md").write_text("top secret", encoding="utf-8")
    return tmp_path


def test_overview_lists_every_base(kb_root):
    result = list_knowledge(knowledge_root=str(kb_root))

    bases = {b["skill"]: b for b in result["knowledge_bases"]}
    assert set(bases) == {"stronghold-of-security", "grand-library", "dinhs-bulwark", "svk"}
    assert bases["stronghold-of-security"]["file_count"] == 4
    assert bases["stronghold-of-security"]["categories"] == ["core", "patterns"]
    assert bases["dinhs-bulwark"]["file_count"] == 0
    assert bases["svk"]["files"] == ["VISION.md"]
    assert [p["name"] for p in bases["grand-library"]["domain_packs"]] == ["defi", "nft"]
    assert all("content" not in b for b in bases.values())


def test_detailed_view(kb_root):
    result = list_knowledge("stronghold-of-security", knowledge_root=str(kb_root))

    assert result["categories"]["patterns"] == {
        "subcategories": ["access-control", "cpi"],
        "file_count": 2,
    }
    assert result["categories"]["core"] == {"files": ["checklist.md"], "file_count": 1}
    assert result["total_files"] == 4


def test_detailed_domain_pack_index_check(kb_root):
    result = list_knowledge("grand-library", knowledge_root=str(kb_root))

    packs = {p["name"]: p for p in result["domain_packs"]}
    assert packs["defi"]["index"] == "domain-packs/defi/INDEX.md"
    assert packs["nft"]["index"] is None


def test_unknown_base_fails_closed(kb_root):
    with pytest.raises(UnknownKnowledgeBaseError) as exc:
        list_knowledge("nope", knowledge_root=str(kb_root))
    assert "grand-library" in str(exc.value)

    with pytest.raises(UnknownKnowledgeBaseError):
        read_knowledge("nope", knowledge_root=str(kb_root))


def test_read_primary_index_by_default(kb_root):
    result = read_knowledge("stronghold-of-security", knowledge_root=str(kb_root))

    assert result["path"] == "PATTERNS_INDEX.md"
    assert result["content"] == "# Patterns Index\n"


def test_read_specific_file(kb_root):
    result = read_knowledge("stronghold-of-security", "patterns/cpi/EP-042.md", knowledge_root=str(kb_root))

    assert result["found"] is True
    assert "Arbitrary CPI" in result["content"]


def test_read_missing_file_is_not_found(kb_root):
    result = read_knowledge("grand-library", "templates/none.md", knowledge_root=str(kb_root))

    assert result["found"] is False
    assert "svk_list_knowledge" in result["hint"]


def test_base_without_index_requires_path(kb_root):
    result = read_knowledge("svk", knowledge_root=str(kb_root))

    assert result["found"] is False
    assert result["files"] == ["Skill_Foundation.md", "VISION.md", "Goals.md"]
    assert read_knowledge("svk", "VISION.md", knowledge_root=str(kb_root))["content"] == "# Vision\n"


@pytest.mark.parametrize("path", [
    "../secret.md",
    "../../secret.md",
    "patterns/../../../secret.md",
    "patterns/../PATTERNS_INDEX.md",
    "..\\..\\secret.md",
    "..",
    "/etc/passwd",
])
def test_parent_segments_fail_closed(kb_root, path):
    with pytest.raises(PathTraversalError):
        read_knowledge("stronghold-of-security", path, knowledge_root=str(kb_root))


@pytest.mark.skipif(not hasattr(os, "symlink") or os.name == "nt", reason="symlinks unavailable")
def test_symlink_escape_fails_closed(kb_root):
    base = kb_root / "stronghold-of-security" / "knowledge-base"
    os.symlink(str(kb_root / "secret.md"), str(base / "link.md"))

    with pytest.raises(PathTraversalError):
        read_knowledge("stronghold-of-security", "link.md", knowledge_root=str(kb_root))


def test_knowledge_root_from_env(kb_root, monkeypatch):
    monkeypatch.setenv("SVK_KNOWLEDGE_ROOT", str(kb_root))

    assert read_knowledge("grand-library")["content"] == "# GL Index\n"


def test_knowledge_root_defaults_to_checkout(monkeypatch):
    from svk_mcp.constants import PACKAGE_ROOT, get_knowledge_root

    monkeypatch.delenv("SVK_KNOWLEDGE_ROOT", raising=False)
    assert get_knowledge_root() == PACKAGE_ROOT
    assert os.path.isdir(os.path.join(PACKAGE_ROOT, "svk_mcp"))
