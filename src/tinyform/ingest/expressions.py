"""Parse ${...} expressions embedded in declaration attribute values."""

import re
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Tuple, Union
from ..utils.errors import DeclarationError

TEMPLATE_PATTERN = re.compile(r"\$\{([^}]*)\}")

COUNT_INDEX = "count.index"
SPLAT = "*"
RESERVED_NAMES = {"var", "secret", "count"}

_NAME = r"[A-Za-z_][\w-]*"
_INDEX = r"(?:\[\s*(?P<index>\d+|\*|count\.index)\s*\])?"

_VARIABLE_RE = re.compile(rf"^var\.(?P<path>{_NAME}(?:\.{_NAME})*){_INDEX}$")
_SECRET_RE = re.compile(rf"^secret\.(?P<name>{_NAME})$")
_RESOURCE_RE = re.compile(rf"^(?P<name>{_NAME}){_INDEX}\.(?P<attr>[A-Za-z_]\w*)$")

Index = Union[int, str, None]


@dataclass(frozen=True)
class VariableRef:
    """var.PATH[index] - a value from the declaration's variables."""
    path: Tuple[str, ...]
    index: Index = None
    
    def __str__(self) -> str:
        return "var." + ".".join(self.path) + _format_index(self.index)


@dataclass(frozen=True)
class SecretRef:
    """secret.NAME - a value from the sensitive-values document."""
    name: str
    
    def __str__(self) -> str:
        return f"secret.{self.name}"


@dataclass(frozen=True)
class CountIndexRef:
    """count.index - the ordinal of the enclosing counted resource."""
    
    def __str__(self) -> str:
        return COUNT_INDEX


@dataclass(frozen=True)
class ResourceRef:
    """RESOURCE[index].ATTRIBUTE - an attribute of another resource."""
    resource: str
    attribute: str
    index: Index = None
    
    def __str__(self) -> str:
        return f"{self.resource}{_format_index(self.index)}.{self.attribute}"


Expression = Union[VariableRef, SecretRef, CountIndexRef, ResourceRef]


def _format_index(index: Index) -> str:
    return "" if index is None else f"[{index}]"


def _parse_index(raw: Optional[str]) -> Index:
    if raw is None:
        return None
    if raw.isdigit():
        return int(raw)
    return raw


def parse_expression(text: str) -> Expression:
    """
    Parse the inside of a ${...} template.
    
    Args:
        text: Expression text, e.g. "var.public_subnet_cidr_blocks[count.index]"
        
    Returns:
        Parsed expression
        
    Raises:
        DeclarationError: If the expression is malformed
    """
    text = text.strip()
    
    if text == COUNT_INDEX:
        return CountIndexRef()
    
    match = _VARIABLE_RE.match(text)
    if match:
        index = _parse_index(match.group("index"))
        if index == SPLAT:
            raise DeclarationError(f"Splat index is not allowed on variables: ${{{text}}}")
        return VariableRef(path=tuple(match.group("path").split(".")), index=index)
    
    match = _SECRET_RE.match(text)
    if match:
        return SecretRef(name=match.group("name"))
    
    match = _RESOURCE_RE.match(text)
    if match and match.group("name") not in RESERVED_NAMES:
        return ResourceRef(
            resource=match.group("name"),
            attribute=match.group("attr"),
            index=_parse_index(match.group("index")),
        )
    
    raise DeclarationError(f"Malformed expression: ${{{text}}}")


def whole_template(value: str) -> Optional[str]:
    """Return the inner text when value is exactly one ${...} template."""
    match = TEMPLATE_PATTERN.fullmatch(value.strip())
    return match.group(1) if match else None


def iter_expressions(value: Any) -> Iterator[Expression]:
    """Yield every expression found in a (possibly nested) attribute value."""
    if isinstance(value, str):
        for inner in TEMPLATE_PATTERN.findall(value):
            yield parse_expression(inner)
    elif isinstance(value, dict):
        for item in value.values():
            yield from iter_expressions(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from iter_expressions(item)


def find_resource_refs(value: Any) -> List[ResourceRef]:
    """Collect resource references from an attribute value."""
    return [expr for expr in iter_expressions(value) if isinstance(expr, ResourceRef)]
