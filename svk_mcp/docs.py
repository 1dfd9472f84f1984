"""
Document Store Accessor
=======================
Generated documents live in `.docs/*.md`, decision records in
`.docs/DECISIONS/*.md`. Absence is a normal result, never an exception.
"""

import os
import re
from dataclasses import dataclass
from typing import List, Optional

from .constants import DECISIONS_DIR, DOCS_DIR
from .scanner import list_md_files, read_text


@dataclass
class Document:
    name: str
    path: str
    content: str = ""

    @property
    def description(self) -> str:
        return describe(self.content)

    def summary(self) -> dict:
        return {"name": self.name, "path": self.path, "description": self.description}

    def to_dict(self) -> dict:
        return {"name": self.name, "path": self.path, "description": self.description, "content": self.content}


def describe(content: str) -> str:
    """First non-empty line, with markdown heading marks stripped."""
    for line in content.splitlines():
        if line.strip():
            return re.sub(r"^#+\s*", "", line).strip()
    return ""


def _stem(file_name: str) -> str:
    return file_name[:-3] if file_name.endswith(".md") else file_name


def load_documents(project_dir: str, rel_dir: str) -> Optional[List[Document]]:
    """Load every .md under rel_dir. Undecodable files are left out."""
    files = list_md_files(os.path.join(project_dir, rel_dir))
    if files is None:
        return None

    rel_prefix = rel_dir.replace(os.sep, "/")
    docs = []
    for file_name in files:
        content = read_text(os.path.join(project_dir, rel_dir, file_name))
        if content is None:
            continue
        docs.append(Document(
            name=_stem(file_name),
            path=f"{rel_prefix}/{file_name}",
            content=content,
        ))
    return docs


def match_name(names: List[str], query: str) -> Optional[str]:
    """Exact case-insensitive match first, then substring containment."""
    query_lower = query.lower()
    for name in names:
        if name.lower() == query_lower:
            return name
    for name in names:
        if query_lower in name.lower():
            return name
    return None


def list_documents(project_dir: str) -> dict:
    docs = load_documents(project_dir, DOCS_DIR)
    if docs is None:
        return {
            "found": False,
            "message": "No GL documentation found. Run /GL:survey to generate docs.",
            "documents": [],
        }
    return {"found": True, "documents": [d.summary() for d in docs]}


def get_document(project_dir: str, name: Optional[str] = None) -> dict:
    """
    Retrieve a document by name, or the catalog when name is omitted.

    Resolution: exact case-insensitive stem match, then substring match.
    A miss returns the valid names so the caller can retry.
    """
    if not name:
        return list_documents(project_dir)

    docs = load_documents(project_dir, DOCS_DIR)
    if docs is None:
        return list_documents(project_dir)

    by_name = {d.name: d for d in docs}
    match = match_name(list(by_name), name)
    if match is None:
        return {
            "found": False,
            "message": f'No document matching "{name}" found.',
            "available": list(by_name),
        }

    return {"found": True, **by_name[match].to_dict()}


def get_decisions(project_dir: str, topic: Optional[str] = None) -> dict:
    no_decisions = {
        "found": False,
        "message": "No decisions found. Decisions are captured during /GL:interview.",
        "decisions": [],
    }

    decisions = load_documents(project_dir, DECISIONS_DIR)
    if not decisions:
        return no_decisions

    if topic:
        topic_lower = topic.lower()
        filtered = [
            d for d in decisions
            if topic_lower in d.name.lower() or topic_lower in d.content.lower()
        ]
        if not filtered:
            return {
                "found": False,
                "message": f'No decisions matching topic "{topic}".',
                "available_topics": [d.name for d in decisions],
            }
        decisions = filtered

    return {"found": True, "decisions": [d.to_dict() for d in decisions]}
