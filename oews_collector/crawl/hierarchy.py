"""
NAICS classification hierarchy used to drive the wage crawl.

Depth is encoded by code length: '11' (sector, level 2) down to '111110'
(national industry, level 6). The parent of a node is its code minus the last
digit. The OEWS industries endpoint also publishes aggregate and padded codes
('000000', '31-33'); only plain 2-6 digit codes enter the hierarchy.
"""
import logging
import re
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from oews_collector.bls.schemas import Industry, NaicsRow
from oews_collector.bls.schema_validator import validate_batch
from oews_collector.crawl.series_identity import industry_segment
from oews_collector.database.connection import get_session
from oews_collector.database.models import NaicsCode
from oews_collector.database.upsert import insert_do_nothing

log = logging.getLogger(__name__)

MIN_LEVEL = 2
MAX_LEVEL = 6

_CODE_RE = re.compile(r'^\d{2,6}$')


@dataclass(frozen=True)
class ClassificationNode:
    code: str
    title: str
    level: int
    parent_code: Optional[str]

    @classmethod
    def from_code(cls, code: str, title: str) -> 'ClassificationNode':
        code = code.strip()
        level = len(code)
        return cls(
            code=code,
            title=title.strip(),
            level=level,
            parent_code=code[:-1] if level > MIN_LEVEL else None,
        )

    def as_row(self) -> Dict:
        return {
            'naics_code': self.code,
            'title': self.title,
            'level': self.level,
            'parent_code': self.parent_code,
        }


def build_nodes(industries: Iterable[Industry]) -> List[ClassificationNode]:
    """
    Turn API industries into hierarchy nodes, ordered by level then code.

    Non-numeric codes and codes outside levels 2-6 are ignored. A node whose
    parent is absent is dropped together with its descendants, so every
    non-root node in the result has its parent earlier in the list. A node
    whose series id segment is already taken by a shallower code ('111110'
    under '11111') is dropped too.
    """
    candidates: Dict[str, ClassificationNode] = {}
    for industry in industries:
        code = industry.code.strip()
        if not _CODE_RE.match(code):
            continue
        candidates.setdefault(code, ClassificationNode.from_code(code, industry.text))

    accepted: Dict[str, ClassificationNode] = {}
    segments: Dict[str, str] = {}
    orphans = []
    aliases = []
    for node in sorted(candidates.values(), key=lambda n: (n.level, n.code)):
        if node.parent_code is not None and node.parent_code not in accepted:
            orphans.append(node.code)
            continue
        segment = industry_segment(node.code)
        if segment in segments:
            aliases.append(f"{node.code}={segments[segment]}")
            continue
        segments[segment] = node.code
        accepted[node.code] = node

    if orphans:
        log.warning(f"Dropped {len(orphans)} NAICS codes without a parent: {orphans[:10]}")
    if aliases:
        log.warning(f"Dropped {len(aliases)} NAICS codes sharing a series id with a broader code: {aliases[:10]}")

    return list(accepted.values())


class ClassificationHierarchy:
    """In-memory parent/child index over a set of classification nodes"""

    def __init__(self, nodes: Iterable[ClassificationNode]):
        self._nodes: Dict[str, ClassificationNode] = {}
        self._children: Dict[str, List[ClassificationNode]] = defaultdict(list)
        segments: Dict[str, str] = {}

        for node in sorted(nodes, key=lambda n: (n.level, n.code)):
            if node.parent_code is not None and node.parent_code not in self._nodes:
                raise ValueError(f"NAICS code {node.code} references missing parent {node.parent_code}")
            segment = industry_segment(node.code)
            if segment in segments:
                raise ValueError(f"NAICS codes {segments[segment]} and {node.code} derive the same series id")
            segments[segment] = node.code
            self._nodes[node.code] = node
            if node.parent_code is not None:
                self._children[node.parent_code].append(node)

    @classmethod
    def from_session(cls, session: Session) -> 'ClassificationHierarchy':
        rows = session.execute(
            select(NaicsCode.naics_code, NaicsCode.title, NaicsCode.level, NaicsCode.parent_code)
        ).all()
        return cls(ClassificationNode(code=r[0], title=r[1], level=r[2], parent_code=r[3]) for r in rows)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, code: str) -> bool:
        return code in self._nodes

    def get(self, code: str) -> Optional[ClassificationNode]:
        return self._nodes.get(code)

    def roots(self) -> List[ClassificationNode]:
        return [n for n in self._nodes.values() if n.parent_code is None]

    def children(self, code: str) -> List[ClassificationNode]:
        return list(self._children.get(code, ()))


def fetch_naics_nodes(client) -> List[ClassificationNode]:
    """Fetch the OEWS industry list from the BLS API and build hierarchy nodes"""
    response = client.get_industries()
    nodes = build_nodes(response.industries)
    log.info(f"NAICS industries: {len(response.industries)} published, {len(nodes)} in hierarchy")
    return nodes


def save_naics_nodes(session_factory: sessionmaker, nodes: List[ClassificationNode]) -> int:
    """
    Persist nodes into naics_codes, one level at a time so parents always
    exist before their children. Existing codes are left untouched.
    """
    rows = validate_batch([n.as_row() for n in nodes], NaicsRow, context='NAICS codes')

    by_level: Dict[int, List[Dict]] = defaultdict(list)
    for row in rows:
        by_level[row['level']].append(row)

    inserted = 0
    with get_session(session_factory) as session:
        for level in sorted(by_level):
            inserted += insert_do_nothing(session, NaicsCode, by_level[level], ['naics_code'])

    log.info(f"NAICS codes: {len(rows)} submitted, {inserted} inserted")
    return inserted
