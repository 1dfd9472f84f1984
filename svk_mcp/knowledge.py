"""
Knowledge Base Registry
=======================
Hardcoded roots, dynamic content enumeration.

Knowledge bases are static reference bundles shipped with SVK itself
(exploit pattern catalogs, documentation templates, domain packs). They do
not depend on the project being inspected.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from .constants import get_knowledge_root
from .errors import PathTraversalError, UnknownKnowledgeBaseError
from .scanner import read_text

logger = logging.getLogger("SvkKnowledge")


@dataclass
class KnowledgeSource:
    id: str
    name: str
    description: str
    base_path: str
    primary_index: Optional[str] = None
    static_files: List[str] = field(default_factory=list)

    def root(self, knowledge_root: Optional[str] = None) -> str:
        return os.path.realpath(os.path.join(knowledge_root or get_knowledge_root(), self.base_path))


KNOWLEDGE_SOURCES = [
    KnowledgeSource(
        id="stronghold-of-security",
        name="Stronghold of Security (SOS)",
        description="128 exploit patterns for Solana security auditing",
        base_path="stronghold-of-security/knowledge-base",
        primary_index="PATTERNS_INDEX.md",
    ),
    KnowledgeSource(
        id="grand-library",
        name="Grand Library (GL)",
        description="Documentation resources, domain packs, and templates",
        base_path="grand-library/resources",
        primary_index="INDEX.md",
    ),
    KnowledgeSource(
        id="dinhs-bulwark",
        name="Dinh's Bulwark (DB)",
        description="312 off-chain exploit patterns and 168 AI-generated code pitfalls "
                    "for off-chain security auditing",
        base_path="dinhs-bulwark/knowledge-base",
        primary_index="PATTERNS_INDEX.md",
    ),
    KnowledgeSource(
        id="svk",
        name="SVK Core",
        description="Skill foundation patterns, vision, and goals",
        base_path="Documents",
        static_files=["Skill_Foundation.md", "VISION.md", "Goals.md"],
    ),
]


def get_source(kb_id: str) -> KnowledgeSource:
    for source in KNOWLEDGE_SOURCES:
        if source.id == kb_id:
            return source
    available = [s.id for s in KNOWLEDGE_SOURCES]
    raise UnknownKnowledgeBaseError(
        f"Unknown knowledge base: {kb_id}. Available: {', '.join(available)}",
        available=available,
    )


# =============================================================================
# DIRECTORY HELPERS (missing dirs read as empty)
# =============================================================================

def _entries(dir_path: str) -> List[str]:
    try:
        return sorted(os.listdir(dir_path))
    except OSError:
        return []


def list_subdirs(dir_path: str) -> List[str]:
    return [e for e in _entries(dir_path) if os.path.isdir(os.path.join(dir_path, e))]


def list_md_files(dir_path: str) -> List[str]:
    return [
        e for e in _entries(dir_path)
        if e.endswith(".md") and os.path.isfile(os.path.join(dir_path, e))
    ]


def count_md_files(dir_path: str) -> int:
    count = 0
    for _, _, filenames in os.walk(dir_path):
        count += sum(1 for name in filenames if name.endswith(".md"))
    return count


def _existing_static_files(source: KnowledgeSource, base: str) -> List[str]:
    return [f for f in source.static_files if os.path.isfile(os.path.join(base, f))]


def _domain_packs(base: str, with_index_check: bool) -> List[dict]:
    packs_dir = os.path.join(base, "domain-packs")
    packs = []
    for pack_name in list_subdirs(packs_dir):
        pack_dir = os.path.join(packs_dir, pack_name)
        index = f"domain-packs/{pack_name}/INDEX.md"
        if with_index_check and not os.path.isfile(os.path.join(pack_dir, "INDEX.md")):
            index = None
        packs.append({"name": pack_name, "index": index, "file_count": count_md_files(pack_dir)})
    return packs


# =============================================================================
# CATALOG
# =============================================================================

def enumerate_detailed(source: KnowledgeSource, knowledge_root: Optional[str] = None) -> dict:
    """Category breakdown of one knowledge base, with subcategories and counts."""
    base = source.root(knowledge_root)

    if source.static_files:
        existing = _existing_static_files(source, base)
        return {
            "skill": source.id,
            "name": source.name,
            "primary_index": source.primary_index,
            "files": existing,
            "total_files": len(existing),
        }

    categories = {}
    for dir_name in list_subdirs(base):
        dir_path = os.path.join(base, dir_name)
        subdirs = list_subdirs(dir_path)
        if subdirs:
            categories[dir_name] = {"subcategories": subdirs, "file_count": count_md_files(dir_path)}
        else:
            files = list_md_files(dir_path)
            categories[dir_name] = {"files": files, "file_count": len(files)}

    result = {
        "skill": source.id,
        "name": source.name,
        "primary_index": source.primary_index,
        "top_level_files": list_md_files(base),
        "categories": categories,
        "total_files": count_md_files(base),
    }

    packs = _domain_packs(base, with_index_check=True)
    if packs:
        result["domain_packs"] = packs
    return result


def enumerate_overview(source: KnowledgeSource, knowledge_root: Optional[str] = None) -> dict:
    base = source.root(knowledge_root)

    if source.static_files:
        return {
            "skill": source.id,
            "name": source.name,
            "description": source.description,
            "files": _existing_static_files(source, base),
        }

    entry = {
        "skill": source.id,
        "name": source.name,
        "description": source.description,
        "primary_index": source.primary_index,
        "categories": list_subdirs(base),
        "file_count": count_md_files(base),
    }
    packs = _domain_packs(base, with_index_check=False)
    if packs:
        entry["domain_packs"] = packs
    return entry


def list_knowledge(kb_id: Optional[str] = None, knowledge_root: Optional[str] = None) -> dict:
    """
    List knowledge bases.

    With kb_id, returns the detailed view of that base; otherwise an overview
    of every registered base. Metadata only, never file content.
    """
    if kb_id:
        return enumerate_detailed(get_source(kb_id), knowledge_root)
    return {"knowledge_bases": [enumerate_overview(s, knowledge_root) for s in KNOWLEDGE_SOURCES]}


# =============================================================================
# READER
# =============================================================================

def resolve_knowledge_path(base: str, relative_path: str) -> str:
    """
    Resolve relative_path inside base, or raise PathTraversalError.

    Absolute paths and any ".." segment are refused outright; the resolved
    real path (symlinks followed) must still sit under base.
    """
    if not relative_path or not relative_path.strip():
        raise PathTraversalError("Invalid path: empty")

    normalized = relative_path.replace("\\", "/")
    if os.path.isabs(normalized) or normalized.startswith("/") or os.path.splitdrive(normalized)[0]:
        raise PathTraversalError(f"Invalid path: {relative_path} (must be relative)")
    if ".." in normalized.split("/"):
        raise PathTraversalError(f"Invalid path: {relative_path} (parent segments not allowed)")

    base_real = os.path.realpath(base)
    candidate = os.path.realpath(os.path.join(base_real, *[p for p in normalized.split("/") if p]))
    if os.path.commonpath([base_real, candidate]) != base_real:
        raise PathTraversalError(f"Invalid path: {relative_path} (outside knowledge base)")
    return candidate


def read_knowledge(kb_id: str, relative_path: Optional[str] = None,
                   knowledge_root: Optional[str] = None) -> dict:
    """
    Read one knowledge file. Without relative_path, returns the primary index.
    """
    source = get_source(kb_id)
    base = source.root(knowledge_root)

    if not relative_path:
        if not source.primary_index:
            return {
                "found": False,
                "message": f"{source.name} has no primary index. Specify a file path.",
                "files": source.static_files,
            }
        relative_path = source.primary_index

    abs_file = resolve_knowledge_path(base, relative_path)
    rel = os.path.relpath(abs_file, base).replace(os.sep, "/")

    content = read_text(abs_file)
    if content is None:
        logger.debug(f"Knowledge file missing: {source.id}/{rel}")
        return {
            "found": False,
            "message": f"File not found: {rel}",
            "hint": "Use svk_list_knowledge to browse available files",
        }

    return {"found": True, "skill": source.id, "path": rel, "content": content}
