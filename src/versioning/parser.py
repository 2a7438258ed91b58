"""Requirement and version parsing utilities."""

import re
from typing import Iterable, List, Optional, Tuple, Union

import semantic_version

from errors import ParseError
from .models import Clause, Constraint, ConstraintKind, Requirement

_NAME_RE = re.compile(r'^\s*(?P<name>[^\s<>=~^#&*]+)\s*(?P<rest>.*?)\s*$')
_CLAUSE_RE = re.compile(r'^(?P<op>==|>=|<=|\^=|~=|=|>|<)?\s*(?P<ver>[vV]?[0-9*][0-9A-Za-z.*+\-]*|\*)$')
_URL_RE = re.compile(r'^[a-z][a-z0-9+.\-]*://|^git@', re.IGNORECASE)


def normalize_identity(name: str) -> str:
    """Normalize a package name for comparison.

    Matching is case-insensitive and ignores underscores.
    """
    return name.strip().lower().replace('_', '')


def import_name(url: str) -> str:
    """Derive a package name from a repository URL."""
    tail = url.rstrip('/').replace(':', '/').rsplit('/', 1)[-1]
    if tail.endswith('.git'):
        tail = tail[:-4]
    if tail.lower().startswith('nim-') and len(tail) > 4:
        tail = tail[4:]
    return tail


def is_url(text: str) -> bool:
    """True when text looks like a repository URL rather than a name."""
    return bool(_URL_RE.match(text.strip()))


def parse_version(text: str) -> Optional[semantic_version.Version]:
    """Parse a possibly partial version string ("0.9", "v1.2.3").

    Returns None when the text is not a version.
    """
    if not text:
        return None
    s = text.strip()
    if s[:1] in ('v', 'V') and s[1:2].isdigit():
        s = s[1:]
    if not s[:1].isdigit():
        return None
    try:
        return semantic_version.Version.coerce(s)
    except ValueError:
        return None


def _segments(ver: str) -> List[str]:
    s = ver[1:] if ver[:1] in ('v', 'V') else ver
    return re.split(r'[-+]', s, maxsplit=1)[0].split('.')


def _split_wildcard(ver: str) -> Tuple[List[int], bool]:
    """Return the numeric prefix of a version and whether it was wildcarded."""
    numbers: List[int] = []
    for part in _segments(ver):
        if part in ('*', 'x', 'X'):
            return numbers, True
        if not part.isdigit():
            return numbers, False
        numbers.append(int(part))
    return numbers, False


def _triple(numbers: List[int]) -> str:
    padded = (numbers + [0, 0, 0])[:3]
    return "{}.{}.{}".format(*padded)


def _bump(numbers: List[int]) -> str:
    return _triple(numbers[:-1] + [numbers[-1] + 1])


def _expand_clause(op: str, ver: str) -> List[Clause]:
    """Expand one operator/version pair into normalized clauses."""
    op = op or '=='
    if op == '=':
        op = '=='

    if ver == '*':
        if op in ('==', '>=', '<=', '^=', '~='):
            return []
        raise ValueError(f"operator {op} cannot apply to '*'")

    numbers, wildcard = _split_wildcard(ver)
    if wildcard:
        if not numbers:
            raise ValueError(f"invalid wildcard '{ver}'")
        lower, upper = _triple(numbers), _bump(numbers)
        return {
            '==': [('>=', lower), ('<', upper)],
            '^=': [('>=', lower), ('<', upper)],
            '~=': [('>=', lower), ('<', upper)],
            '>': [('>=', upper)],
            '>=': [('>=', lower)],
            '<': [('<', lower)],
            '<=': [('<', upper)],
        }[op]

    version = parse_version(ver)
    if version is None:
        raise ValueError(f"invalid version '{ver}'")
    text = str(version)

    if op == '^=':
        if version.major > 0:
            upper = f"{version.major + 1}.0.0"
        elif version.minor > 0:
            upper = f"0.{version.minor + 1}.0"
        else:
            upper = f"0.0.{version.patch + 1}"
        return [('>=', text), ('<', upper)]
    if op == '~=':
        if len(_segments(ver)) >= 3:
            upper = f"{version.major}.{version.minor + 1}.0"
        else:
            upper = f"{version.major + 1}.0.0"
        return [('>=', text), ('<', upper)]
    return [(op, text)]


def parse_constraint(text: str) -> Constraint:
    """Parse the constraint portion of a requirement.

    Raises:
        ValueError: if the text is not a constraint.
    """
    s = text.strip()
    if not s:
        return Constraint.any()
    if s.startswith('#'):
        reference = s[1:].strip()
        if not reference or any(c.isspace() for c in reference):
            raise ValueError(f"invalid release reference '{s}'")
        return Constraint(kind=ConstraintKind.RELEASE, reference=reference)

    clauses: List[Clause] = []
    for piece in s.split('&'):
        piece = piece.strip()
        m = _CLAUSE_RE.match(piece)
        if not m:
            raise ValueError(f"invalid version constraint '{piece}'")
        for clause in _expand_clause(m.group('op') or '', m.group('ver')):
            if clause not in clauses:
                clauses.append(clause)
    if not clauses:
        return Constraint.any()
    return Constraint(kind=ConstraintKind.RANGE, clauses=tuple(clauses))


def parse_requirement(text: str, source: str = "cli") -> Requirement:
    """Parse a single requirement such as ``"foo > 2.*"`` or ``"foo#head"``.

    Raises:
        ParseError: if the text is malformed.
    """
    if not isinstance(text, str) or not text.strip():
        raise ParseError("empty requirement", [repr(text)])

    s = text.strip()
    url = None
    # URL identities may themselves contain '#', '<' never
    if _URL_RE.match(s):
        head, _, rest = s.partition(' ')
        if '#' in head:
            head, _, ref = head.partition('#')
            rest = f"#{ref} {rest}".strip()
        url, identity_text, rest_text = head, import_name(head), rest
    else:
        m = _NAME_RE.match(s)
        if not m:
            raise ParseError(f"malformed requirement '{s}'", [s])
        identity_text, rest_text = m.group('name'), m.group('rest')

    try:
        constraint = parse_constraint(rest_text)
    except ValueError as exc:
        raise ParseError(f"malformed requirement '{s}': {exc}", [s]) from exc

    return Requirement(
        identity=normalize_identity(identity_text),
        constraint=constraint,
        source=source,
        url=url,
    )


def parse_requires(text: Union[str, Iterable[str]], source: str = "cli") -> List[Requirement]:
    """Parse a list of requirements, collecting every failure.

    Accepts a comma-separated string or an iterable of such strings; every
    item is split on commas, so `"nim >= 1.0, jester"` is two requirements
    wherever it appears.

    Raises:
        ParseError: listing all malformed items.
    """
    chunks = [text] if isinstance(text, str) else list(text)
    items = [piece for chunk in chunks if chunk for piece in chunk.split(',') if piece.strip()]

    found: List[Requirement] = []
    failures: List[str] = []
    for item in items:
        try:
            found.append(parse_requirement(item, source))
        except ParseError as exc:
            failures.extend(exc.failures or [item])
    if failures:
        raise ParseError(
            f"unable to parse {len(failures)} requirement(s): " + "; ".join(failures),
            failures,
        )
    return found


def format_requirement(req: Requirement) -> str:
    """Render a requirement in the syntax accepted by ``parse_requirement``."""
    name = req.url or req.identity
    if req.constraint.kind == ConstraintKind.ANY:
        return name
    if req.constraint.kind == ConstraintKind.RELEASE:
        return f"{name}#{req.constraint.reference}"
    return f"{name} {req.constraint.describe()}"
