from __future__ import annotations

import importlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from matchmaker.address import b58encode, multihash

DNA_VERSION = 1


class DnaValidationError(Exception):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


@dataclass(frozen=True)
class ZomeDef:
    name: str
    module: str
    entry_types: List[str] = field(default_factory=list)
    functions: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Dna:
    name: str
    path: Optional[Path]
    dna_hash: str
    zomes: Dict[str, ZomeDef]

    def zome(self, zome: str) -> ZomeDef:
        zdef = self.zomes.get(zome)
        if zdef is None:
            raise DnaValidationError(f"unknown zome: {zome}", {"dna": self.name, "zome": zome})
        return zdef

    def _module(self, zdef: ZomeDef):
        try:
            return importlib.import_module(zdef.module)
        except ImportError as exc:
            raise DnaValidationError("zome module not importable", {"zome": zdef.name, "module": zdef.module}) from exc

    def resolve(self, zome: str, function: str) -> Callable[..., Any]:
        zdef = self.zome(zome)
        if function not in zdef.functions:
            raise DnaValidationError(f"unknown function: {zome}/{function}", {"zome": zome, "function": function})
        fn = getattr(self._module(zdef), function, None)
        if not callable(fn):
            raise DnaValidationError(f"function not implemented: {zome}/{function}", {"zome": zome, "function": function})
        return fn

    def validator(self, entry_type: str) -> Optional[Callable[..., None]]:
        for zdef in self.zomes.values():
            if entry_type in zdef.entry_types:
                return getattr(self._module(zdef), "VALIDATORS", {}).get(entry_type)
        raise DnaValidationError(f"unknown entry type: {entry_type}", {"dna": self.name, "entry_type": entry_type})


def load_dna_file(path: Path) -> Dict[str, Any]:
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise DnaValidationError("dna file not found", {"path": str(path)}) from exc
    try:
        data = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise DnaValidationError("dna json invalid", {"path": str(path), "error": str(exc)}) from exc
    return data


def _str_list(value: Any, where: str) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(x, str) and x for x in value):
        raise DnaValidationError(f"{where} must be a list of names")
    return list(value)


def validate_dna_data(data: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise DnaValidationError("dna must be object")
    if data.get("version") != DNA_VERSION:
        raise DnaValidationError("unsupported dna version", {"version": data.get("version")})
    if not isinstance(data.get("name"), str) or not data["name"]:
        raise DnaValidationError("dna name required")
    zomes = data.get("zomes")
    if not isinstance(zomes, dict) or not zomes:
        raise DnaValidationError("dna must declare at least one zome")
    seen_types: Dict[str, str] = {}
    for zname, zdata in zomes.items():
        if not isinstance(zdata, dict):
            raise DnaValidationError("zome must be object", {"zome": zname})
        if not isinstance(zdata.get("module"), str) or not zdata["module"]:
            raise DnaValidationError("zome module required", {"zome": zname})
        _str_list(zdata.get("functions", []), f"zomes.{zname}.functions")
        for et in _str_list(zdata.get("entry_types", []), f"zomes.{zname}.entry_types"):
            if et in seen_types:
                raise DnaValidationError("entry type declared twice", {"entry_type": et, "zomes": [seen_types[et], zname]})
            seen_types[et] = zname
    return data


def dna_hash(raw: bytes) -> str:
    return b58encode(multihash(raw))


def from_data(data: Dict[str, Any], path: Optional[Path] = None, raw: Optional[bytes] = None) -> Dna:
    validate_dna_data(data)
    if raw is None:
        raw = json.dumps(data, sort_keys=True).encode("utf-8")
    zomes = {
        zname: ZomeDef(
            name=zname,
            module=zdata["module"],
            entry_types=list(zdata.get("entry_types", [])),
            functions=list(zdata.get("functions", [])),
        )
        for zname, zdata in data["zomes"].items()
    }
    return Dna(name=data["name"], path=path, dna_hash=dna_hash(raw), zomes=zomes)


def load_dna(path: Path, name: Optional[str] = None) -> Dna:
    """Load and validate a DNA artifact.

    ``name`` overrides the name stored in the file, the way a conductor
    config can give an instance's DNA its own id.
    """
    path = Path(path)
    data = load_dna_file(path)
    dna = from_data(data, path=path, raw=path.read_bytes())
    if name:
        dna = Dna(name=name, path=dna.path, dna_hash=dna.dna_hash, zomes=dna.zomes)
    return dna


def build_dna_data(name: str, zome_modules: Dict[str, str]) -> Dict[str, Any]:
    zomes = {}
    for zname, module_name in zome_modules.items():
        mod = importlib.import_module(module_name)
        zomes[zname] = {
            "module": module_name,
            "entry_types": list(getattr(mod, "ENTRY_TYPES", [])),
            "functions": list(getattr(mod, "FUNCTIONS", [])),
        }
    return validate_dna_data({"version": DNA_VERSION, "name": name, "zomes": zomes})
