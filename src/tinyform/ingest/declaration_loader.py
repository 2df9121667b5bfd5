"""Load and validate declaration and secrets documents."""

import json
from pathlib import Path
from typing import Any, Dict, Optional
import yaml
from pydantic import ValidationError
from .expressions import RESERVED_NAMES, iter_expressions
from .models import Declaration, OutputDecl
from ..utils.errors import DeclarationError
from ..utils.logging import get_logger

logger = get_logger("ingest.declaration_loader")


def _read_document(path: Path, label: str) -> Any:
    """Read a YAML or JSON document (JSON is parsed as JSON for clearer errors)."""
    if not path.exists():
        raise DeclarationError(
            f"{label} file not found: {path}. "
            "Please check the file path and ensure the file exists. "
            "Run 'tinyform init' to write a starter stack."
        )
    
    if not path.is_file():
        raise DeclarationError(f"Path is not a file: {path}.")
    
    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix == ".json":
                return json.load(f)
            return yaml.safe_load(f)
    except json.JSONDecodeError as e:
        raise DeclarationError(f"Invalid JSON in {label.lower()} file: {e}")
    except yaml.YAMLError as e:
        raise DeclarationError(f"Invalid YAML in {label.lower()} file: {e}")
    except OSError as e:
        raise DeclarationError(
            f"Error reading {label.lower()} file: {e}. "
            "Please check file permissions and try again."
        )


def parse_declaration(data: Any) -> Declaration:
    """
    Validate a raw declaration mapping.
    
    Outputs may be given as a mapping of name to {value, description,
    sensitive} or as a list with explicit names.
    
    Args:
        data: Parsed document
        
    Returns:
        Validated Declaration
        
    Raises:
        DeclarationError: If the structure is invalid
    """
    if not isinstance(data, dict):
        raise DeclarationError("Declaration must contain a dictionary")
    
    data = dict(data)
    outputs = data.get("outputs") or []
    if isinstance(outputs, dict):
        data["outputs"] = [
            _output_from_mapping(name, spec) for name, spec in outputs.items()
        ]
    
    try:
        declaration = Declaration(**data)
    except ValidationError as e:
        raise DeclarationError(f"Invalid declaration: {e}")
    except TypeError as e:
        raise DeclarationError(f"Invalid declaration structure: {e}")
    
    _validate_declaration(declaration)
    return declaration


def _output_from_mapping(name: str, spec: Any) -> Dict[str, Any]:
    if isinstance(spec, dict) and "value" in spec:
        return {"name": name, **spec}
    return {"name": name, "value": spec}


def _validate_declaration(declaration: Declaration) -> None:
    """Check ids, counts and expression syntax."""
    seen = set()
    for resource in declaration.resources:
        if resource.id in seen:
            raise DeclarationError(f"Duplicate resource id: {resource.id}")
        if resource.id in RESERVED_NAMES:
            raise DeclarationError(f"Resource id '{resource.id}' is reserved")
        seen.add(resource.id)
        
        if isinstance(resource.count, int) and resource.count < 0:
            raise DeclarationError(f"Resource '{resource.id}' has a negative count: {resource.count}")
        
        try:
            list(iter_expressions(resource.attributes))
            list(iter_expressions(resource.count))
        except DeclarationError as e:
            raise DeclarationError(f"Resource '{resource.id}': {e}")
    
    names = set()
    for output in declaration.outputs:
        if output.name in names:
            raise DeclarationError(f"Duplicate output name: {output.name}")
        names.add(output.name)
        try:
            list(iter_expressions(output.value))
        except DeclarationError as e:
            raise DeclarationError(f"Output '{output.name}': {e}")


def load_declaration(declaration_path: str) -> Declaration:
    """
    Load and validate a declaration document.
    
    Args:
        declaration_path: Path to a YAML or JSON declaration
        
    Returns:
        Validated Declaration
        
    Raises:
        DeclarationError: If file cannot be loaded or is invalid
    """
    path = Path(declaration_path)
    declaration = parse_declaration(_read_document(path, "Declaration"))
    logger.info(
        f"Loaded declaration from {declaration_path} "
        f"(resources: {len(declaration.resources)}, outputs: {len(declaration.outputs)})"
    )
    return declaration


def load_secrets(secrets_path: Optional[str]) -> Dict[str, Any]:
    """
    Load the sensitive-values document.
    
    Args:
        secrets_path: Path to the secrets file, or None for no secrets
        
    Returns:
        Mapping of secret name to value
        
    Raises:
        DeclarationError: If the file is unreadable or not a mapping
    """
    if secrets_path is None:
        return {}
    
    data = _read_document(Path(secrets_path), "Secrets")
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DeclarationError("Secrets file must contain a dictionary")
    
    # Values are never logged; only the count is.
    logger.info(f"Loaded {len(data)} secrets from {secrets_path}")
    return data
