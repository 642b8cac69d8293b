"""
Reflection-based discovery of declarations to export.

Compiled Kotlin classes are loaded (without being initialised) in a JVM
started through JPype. Classes carrying the export annotation are described
with Java reflection and normalised to Kotlin type shapes.
"""

from __future__ import annotations

import dataclasses
import io
import logging
import re
import tempfile
import zipfile
from collections.abc import Iterable, Iterator
from pathlib import Path

import jpype

from kustom_export._exporter.descriptors import (
    ClassDescriptor,
    Descriptor,
    EnumDescriptor,
    FunctionDescriptor,
    InterfaceDescriptor,
    ParameterDescriptor,
    PropertyDescriptor,
    SealedClassDescriptor,
    SealedSubClassDescriptor,
    SourceLocation,
    SuperDescriptor,
)
from kustom_export._exporter.errors import Diagnostic, ExportError, UnsupportedDeclarationError
from kustom_export._exporter.export import ExportRequest, GenericsExportRequest, Request
from kustom_export._exporter.types import ANY, TypeShape, array_of

log = logging.getLogger(__name__)

DEFAULT_ANNOTATION = "deezer.kustom.KustomExport"
DEFAULT_GENERICS_ANNOTATION = "deezer.kustom.KustomExportGenerics"

# ---------------------------------------------------------------------------
# JVM name -> Kotlin type shape
# ---------------------------------------------------------------------------

_PRIMITIVES = {
    "boolean": "Boolean",
    "byte": "Byte",
    "char": "Char",
    "short": "Short",
    "int": "Int",
    "long": "Long",
    "float": "Float",
    "double": "Double",
}

_BOXED = {
    "java.lang.Boolean": "Boolean",
    "java.lang.Byte": "Byte",
    "java.lang.Character": "Char",
    "java.lang.Short": "Short",
    "java.lang.Integer": "Int",
    "java.lang.Long": "Long",
    "java.lang.Float": "Float",
    "java.lang.Double": "Double",
}

_KOTLIN_NAMES = {
    "void": TypeShape("Unit", "kotlin"),
    "java.lang.Void": TypeShape("Unit", "kotlin"),
    "java.lang.Object": TypeShape("Any", "kotlin"),
    "java.lang.String": TypeShape("String", "kotlin"),
    "java.lang.CharSequence": TypeShape("CharSequence", "kotlin"),
    "java.lang.Number": TypeShape("Number", "kotlin"),
    "java.lang.Comparable": TypeShape("Comparable", "kotlin"),
    "java.lang.Iterable": TypeShape("Iterable", "kotlin.collections"),
    "java.util.Collection": TypeShape("Collection", "kotlin.collections"),
    "java.util.List": TypeShape("List", "kotlin.collections"),
    "java.util.Set": TypeShape("Set", "kotlin.collections"),
    "java.util.Map": TypeShape("Map", "kotlin.collections"),
    "java.util.Iterator": TypeShape("Iterator", "kotlin.collections"),
    "java.lang.Throwable": TypeShape("Throwable", "kotlin"),
    "java.lang.Exception": TypeShape("Exception", "kotlin"),
    "java.lang.RuntimeException": TypeShape("RuntimeException", "kotlin"),
    "java.lang.IllegalArgumentException": TypeShape("IllegalArgumentException", "kotlin"),
    "java.lang.IllegalStateException": TypeShape("IllegalStateException", "kotlin"),
    "java.lang.IndexOutOfBoundsException": TypeShape("IndexOutOfBoundsException", "kotlin"),
    "java.lang.UnsupportedOperationException": TypeShape("UnsupportedOperationException", "kotlin"),
    "java.lang.NumberFormatException": TypeShape("NumberFormatException", "kotlin"),
    "java.lang.NullPointerException": TypeShape("NullPointerException", "kotlin"),
    "java.lang.ClassCastException": TypeShape("ClassCastException", "kotlin"),
    "java.lang.ArithmeticException": TypeShape("ArithmeticException", "kotlin"),
    "java.lang.AssertionError": TypeShape("AssertionError", "kotlin"),
    "java.util.ConcurrentModificationException": TypeShape("ConcurrentModificationException", "kotlin"),
    "java.util.NoSuchElementException": TypeShape("NoSuchElementException", "kotlin"),
}

_PRIMITIVE_ARRAYS = {
    "boolean": "BooleanArray",
    "byte": "ByteArray",
    "char": "CharArray",
    "short": "ShortArray",
    "int": "IntArray",
    "long": "LongArray",
    "float": "FloatArray",
    "double": "DoubleArray",
}

_KOTLIN_FUNCTION_RE = re.compile(r"^kotlin\.jvm\.functions\.(Function\d+)$")


def translate_type_name(
    type_name: str,
    type_args: Iterable[TypeShape] = (),
    nullable: bool = False,
) -> TypeShape:
    """
    Translate a JVM class name to the Kotlin type it was compiled from.

    Converted types:
     - Java primitives and boxed primitives -> Kotlin primitives
     - void / java.lang.Void -> kotlin.Unit
     - java.lang.Object, String, CharSequence, ... -> their kotlin counterparts
     - java.util collection interfaces -> kotlin.collections read-only interfaces
     - kotlin.jvm.functions.FunctionN -> kotlin.FunctionN
     - Java exceptions aliased by Kotlin -> kotlin exceptions

    Anything else keeps its name, nested classes use '.' instead of '$'.
    """
    type_args = tuple(type_args)
    if type_name in _PRIMITIVES:
        return TypeShape(_PRIMITIVES[type_name], "kotlin", (), nullable)
    if type_name in _BOXED:
        return TypeShape(_BOXED[type_name], "kotlin", (), nullable)
    if type_name in _KOTLIN_NAMES:
        known = _KOTLIN_NAMES[type_name]
        return TypeShape(known.name, known.package, type_args, nullable)
    if m := _KOTLIN_FUNCTION_RE.match(type_name):
        return TypeShape(m.group(1), "kotlin", type_args, nullable)
    package, _, name = type_name.rpartition(".")
    return TypeShape(name.replace("$", "."), package, type_args, nullable)


_TYPE_TOKEN_RE = re.compile(r"\s*([\w.$]+|<|>|,|\?)")


def parse_type_reference(text: str) -> TypeShape:
    """
    Parse a textual type reference such as ``foo.Template<kotlin.Long, java.util.List<String>>?``.

    Names go through translate_type_name, so Java and Kotlin spellings are both accepted.
    Unqualified names other than Java primitives are looked up in ``kotlin``.
    """
    tokens = _TYPE_TOKEN_RE.findall(text)
    if "".join(tokens) != re.sub(r"\s+", "", text):
        raise ValueError(f"Invalid type reference {text!r}")
    pos = 0

    def parse() -> TypeShape:
        nonlocal pos
        if pos >= len(tokens) or not re.match(r"[\w.$]+$", tokens[pos]):
            raise ValueError(f"Invalid type reference {text!r}")
        name = tokens[pos]
        pos += 1
        args: list[TypeShape] = []
        if pos < len(tokens) and tokens[pos] == "<":
            pos += 1
            args.append(parse())
            while pos < len(tokens) and tokens[pos] == ",":
                pos += 1
                args.append(parse())
            if pos >= len(tokens) or tokens[pos] != ">":
                raise ValueError(f"Unbalanced '<' in type reference {text!r}")
            pos += 1
        nullable = pos < len(tokens) and tokens[pos] == "?"
        if nullable:
            pos += 1
        if "." not in name and name not in _PRIMITIVES and name != "void":
            name = f"kotlin.{name}"
        if name in ("kotlin.List", "kotlin.Set", "kotlin.Map", "kotlin.Collection"):
            name = "kotlin.collections." + name.partition(".")[2]
        return translate_type_name(name, args, nullable)

    shape = parse()
    if pos != len(tokens):
        raise ValueError(f"Unexpected trailing input in type reference {text!r}")
    return shape


# ---------------------------------------------------------------------------
# Class files
# ---------------------------------------------------------------------------


def _open_jar_or_aar_from_file(file_path: Path) -> zipfile.ZipFile:
    """
    Open a .jar or .aar file and return a ZipFile pointing to the JAR contents.

    For .aar files ``classes.jar`` is read from the archive.
    """
    suffix = file_path.suffix.lower()
    if suffix == ".jar":
        return zipfile.ZipFile(file_path, "r")
    elif suffix == ".aar":
        with zipfile.ZipFile(file_path, "r") as aar:
            aar_entries = aar.namelist()
            if "classes.jar" not in aar_entries:
                raise ValueError(
                    f"No 'classes.jar' found in AAR '{file_path}'. "
                    f"Available entries: {aar_entries}"
                )
            jar_data = aar.read("classes.jar")
        return zipfile.ZipFile(io.BytesIO(jar_data), "r")
    else:
        raise ValueError(
            f"Unsupported file format '{file_path.suffix}'. Expected '.jar' or '.aar'."
        )


def _class_name(class_file: str) -> str | None:
    """``foo/bar/Baz.class`` -> ``foo.bar.Baz``; nested, anonymous and module classes are skipped."""
    stem = class_file.removesuffix(".class")
    if "$" in stem or stem.endswith(("module-info", "package-info")):
        return None
    return stem.replace("/", ".")


def iter_class_names(input_path: Path) -> Iterator[tuple[str, SourceLocation]]:
    """Top-level class names found in a .jar/.aar file or a directory of .class files."""
    if input_path.suffix.lower() in (".jar", ".aar"):
        with _open_jar_or_aar_from_file(input_path) as jar:
            for entry in sorted(jar.namelist()):
                if entry.endswith(".class") and (name := _class_name(entry)):
                    yield name, SourceLocation(f"{input_path}!/{entry}")
    else:
        for f in sorted(input_path.rglob("*.class")):
            if name := _class_name(f.relative_to(input_path).as_posix()):
                yield name, SourceLocation(str(f))


def classpath_entries(input_paths: Iterable[Path], extract_dir: Path) -> list[str]:
    """JVM classpath for the inputs; the classes.jar of an .aar is extracted to *extract_dir*."""
    entries = []
    for p in input_paths:
        if p.suffix.lower() == ".aar":
            target = extract_dir / f"{p.stem}-classes.jar"
            with zipfile.ZipFile(p, "r") as aar:
                target.write_bytes(aar.read("classes.jar"))
            entries.append(str(target))
        else:
            entries.append(str(p))
    return entries


def start_jvm(classpath: list[str], jvmpath: str | None = None) -> None:
    if jpype.isJVMStarted():
        for entry in classpath:
            jpype.addClassPath(entry)
        return
    log.info("Starting JVM...")
    jpype.startJVM(jvmpath=jvmpath, classpath=classpath)


# ---------------------------------------------------------------------------
# Reflection -> descriptors
# ---------------------------------------------------------------------------

NON_EXPORTABLE_FUNCTIONS = frozenset(
    ["equals", "hashCode", "toString", "copy", "getClass", "notify", "notifyAll", "wait"]
    + [f"component{i}" for i in range(1, 31)]
)

_ACCESSOR_RE = re.compile(r"^(get|set|is)([A-Z].*)$")


def _java(name: str):
    return jpype.JClass(name)


def java_shape(t, top_level: bool = False) -> TypeShape:
    """
    Kotlin type shape of a ``java.lang.reflect.Type``.

    Kotlin compiles non-null primitives to JVM primitives, so a boxed primitive
    found outside of type arguments stands for a nullable Kotlin primitive.
    """
    reflect = "java.lang.reflect."
    if isinstance(t, _java(reflect + "ParameterizedType")):
        raw = str(t.getRawType().getName())
        return translate_type_name(raw, [java_shape(a) for a in t.getActualTypeArguments()])
    if isinstance(t, _java(reflect + "TypeVariable")):
        return TypeShape(str(t.getName()))
    if isinstance(t, _java(reflect + "WildcardType")):
        lower = list(t.getLowerBounds())
        if lower:
            return java_shape(lower[0])
        upper = list(t.getUpperBounds())
        return java_shape(upper[0]) if upper else ANY
    if isinstance(t, _java(reflect + "GenericArrayType")):
        return array_of(java_shape(t.getGenericComponentType()))
    # java.lang.Class
    if t.isArray():
        component = t.getComponentType()
        if component.isPrimitive():
            return TypeShape(_PRIMITIVE_ARRAYS[str(component.getName())], "kotlin")
        return array_of(java_shape(component))
    name = str(t.getName())
    return translate_type_name(name, nullable=top_level and name in _BOXED)


def _is_static(member) -> bool:
    modifier = _java("java.lang.reflect.Modifier")
    return bool(modifier.isStatic(member.getModifiers()))


def _supertypes(cls) -> list:
    supers = []
    superclass = cls.getSuperclass()
    if superclass is not None and str(superclass.getName()) != "java.lang.Object":
        supers.append(superclass)
    supers.extend(cls.getInterfaces())
    return supers


def _overrides(cls, method) -> bool:
    """True when *method* is inherited or overrides a public method of a supertype."""
    if not method.getDeclaringClass().equals(cls):
        return True
    for sup in _supertypes(cls):
        try:
            sup.getMethod(method.getName(), method.getParameterTypes())
            return True
        except jpype.JException:
            continue
    return False


def _exportable_methods(cls) -> list:
    methods = []
    for m in cls.getMethods():
        if _is_static(m) or m.isSynthetic() or m.isBridge():
            continue
        if str(m.getDeclaringClass().getName()) == "java.lang.Object":
            continue
        methods.append(m)
    # Reflection order is unspecified, sort for reproducible output.
    return sorted(methods, key=lambda m: (str(m.getName()), int(m.getParameterCount()), str(m)))


def _property_name(accessor: str, prefix: str) -> str:
    if prefix == "is":
        return accessor
    rest = accessor[len(prefix):]
    return rest[0].lower() + rest[1:]


def _parameters(executable) -> tuple[ParameterDescriptor, ...]:
    return tuple(
        ParameterDescriptor(str(p.getName()), java_shape(p.getParameterizedType(), top_level=True))
        for p in executable.getParameters()
    )


def parse_members(cls) -> tuple[tuple[PropertyDescriptor, ...], tuple[FunctionDescriptor, ...]]:
    methods = _exportable_methods(cls)
    setters = {
        str(m.getName())
        for m in methods
        if str(m.getName()).startswith("set") and m.getParameterCount() == 1
    }
    properties: list[PropertyDescriptor] = []
    functions: list[FunctionDescriptor] = []
    for m in methods:
        name = str(m.getName())
        if name in NON_EXPORTABLE_FUNCTIONS or "$" in name:
            continue
        accessor = _ACCESSOR_RE.match(name)
        is_getter = (
            accessor is not None
            and accessor.group(1) != "set"
            and m.getParameterCount() == 0
            and str(m.getReturnType().getName()) != "void"
            and (accessor.group(1) == "get" or str(m.getReturnType().getName()) == "boolean")
        )
        if is_getter:
            prefix = accessor.group(1)
            setter = "set" + (name[len(prefix):] if prefix == "get" else name[2:])
            properties.append(
                PropertyDescriptor(
                    name=_property_name(name, prefix),
                    type=java_shape(m.getGenericReturnType(), top_level=True),
                    is_mutable=setter in setters,
                    is_override=_overrides(cls, m),
                )
            )
        elif accessor is not None and accessor.group(1) == "set" and m.getParameterCount() == 1:
            continue
        else:
            functions.append(
                FunctionDescriptor(
                    name=name,
                    return_type=java_shape(m.getGenericReturnType(), top_level=True),
                    parameters=_parameters(m),
                    is_override=_overrides(cls, m),
                )
            )
    return tuple(properties), tuple(functions)


def _primary_constructor_params(cls) -> tuple[ParameterDescriptor, ...]:
    candidates = []
    for c in cls.getConstructors():
        if c.isSynthetic():
            continue
        types = [str(t.getName()) for t in c.getParameterTypes()]
        if types and types[-1] == "kotlin.jvm.internal.DefaultConstructorMarker":
            continue
        candidates.append(c)
    if not candidates:
        return ()
    primary = max(candidates, key=lambda c: int(c.getParameterCount()))
    return _parameters(primary)


def _supers(cls) -> tuple[SuperDescriptor, ...]:
    supers = []
    superclass = cls.getGenericSuperclass()
    if superclass is not None:
        raw = superclass.getRawType() if hasattr(superclass, "getRawType") else superclass
        if str(raw.getName()) not in ("java.lang.Object", "java.lang.Enum", "java.lang.Record"):
            # Arguments handed to the super constructor only exist at runtime.
            supers.append(SuperDescriptor(java_shape(superclass), is_class=True))
    for iface in cls.getGenericInterfaces():
        raw = iface.getRawType() if hasattr(iface, "getRawType") else iface
        if str(raw.getName()).startswith("kotlin.jvm.internal."):
            continue
        supers.append(SuperDescriptor(java_shape(iface)))
    return tuple(supers)


def _is_sealed(cls) -> bool:
    # Class.isSealed() exists since Java 17.
    return hasattr(cls, "isSealed") and bool(cls.isSealed())


def _is_kotlin_object(cls) -> bool:
    for f in cls.getDeclaredFields():
        if str(f.getName()) == "INSTANCE" and _is_static(f) and f.getType().equals(cls):
            return True
    return False


def describe_class(cls, origin: SourceLocation | None = None) -> Descriptor:
    """Build the descriptor of a ``java.lang.Class``."""
    name = str(cls.getName())
    package = str(cls.getPackageName())
    simple_name = str(cls.getSimpleName())

    if cls.isAnnotation():
        raise UnsupportedDeclarationError(f"Annotation class {name} cannot be exported", origin)
    if _is_kotlin_object(cls):
        raise UnsupportedDeclarationError(f"Object declaration {name} cannot be exported", origin)

    if cls.isEnum():
        # Enum constants are declared in order; reading the fields avoids initialising the class.
        entries = tuple(str(f.getName()) for f in cls.getDeclaredFields() if f.isEnumConstant())
        return EnumDescriptor(package, simple_name, entries, origin)

    generic_params = tuple(str(tv.getName()) for tv in cls.getTypeParameters())
    properties, functions = parse_members(cls)

    if cls.isInterface():
        return InterfaceDescriptor(
            package=package,
            simple_name=simple_name,
            generic_params=generic_params,
            supers=_supers(cls),
            properties=properties,
            functions=functions,
            origin=origin,
        )

    if _is_sealed(cls):
        return SealedClassDescriptor(
            package=package,
            simple_name=simple_name,
            constructor_params=_primary_constructor_params(cls),
            properties=properties,
            functions=functions,
            subclasses=tuple(
                SealedSubClassDescriptor(str(sub.getPackageName()), str(sub.getSimpleName()))
                for sub in cls.getPermittedSubclasses()
            ),
            origin=origin,
        )

    return ClassDescriptor(
        package=package,
        simple_name=simple_name,
        generic_params=generic_params,
        supers=_supers(cls),
        constructor_params=_primary_constructor_params(cls),
        properties=properties,
        functions=functions,
        origin=origin,
    )


def load_class(name: str):
    """Load a class by name without running its static initialisers."""
    return jpype.JClass(name, initialize=False).class_


def has_annotation(cls, annotation: str) -> bool:
    return any(str(a.annotationType().getName()) == annotation for a in cls.getAnnotations())


def is_throwable(cls) -> bool:
    return bool(_java("java.lang.Throwable").isAssignableFrom(cls))


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True)
class GenericsSpec:
    """``Name=pkg.Class<Arg, ...>``: export ``pkg.Class<Arg, ...>`` as ``Name``."""

    name: str
    class_name: str
    type_args: tuple[TypeShape, ...]

    @classmethod
    def parse(cls, text: str) -> GenericsSpec:
        name, sep, target = text.partition("=")
        if not sep or not name.strip().isidentifier():
            raise ValueError(f"Expected 'Name=pkg.Class<Arg, ...>', got {text!r}")
        class_name, _, args = target.strip().partition("<")
        if not args:
            raise ValueError(f"No type arguments given in {text!r}")
        shape = parse_type_reference(f"Generic<{args}")
        return cls(name.strip(), class_name.strip(), shape.type_args)


def read_generics_annotation(cls, annotation: str = DEFAULT_GENERICS_ANNOTATION) -> list[GenericsSpec]:
    """
    Instantiations requested by ``@file:KustomExportGenerics([KustomGenerics(name, kClass, typeParameters)])``.

    File annotations are compiled onto the file facade class (``<File>Kt``) and
    are only visible here when the annotation is retained at runtime.
    """
    specs = []
    for a in cls.getAnnotations():
        if str(a.annotationType().getName()) != annotation:
            continue
        for entry in a.exportGenerics():
            specs.append(
                GenericsSpec(
                    str(entry.name()),
                    str(entry.kClass().getName()),
                    tuple(java_shape(t) for t in entry.typeParameters()),
                )
            )
    return specs


@dataclasses.dataclass
class Discovery:
    requests: list[Request] = dataclasses.field(default_factory=list)
    extra_exceptions: list[TypeShape] = dataclasses.field(default_factory=list)
    diagnostics: list[Diagnostic] = dataclasses.field(default_factory=list)


def _generics_request(
    spec: GenericsSpec,
    locations: dict[str, SourceLocation],
    requested_at: SourceLocation | None,
) -> GenericsExportRequest:
    location = locations.get(spec.class_name)
    try:
        descriptor = describe_class(load_class(spec.class_name), location)
    except ExportError as e:
        raise e.at(location, spec.name)
    except Exception as e:
        raise ExportError(f"Cannot load {spec.class_name}: {e}", location, spec.name) from e
    sources = tuple(s for s in (requested_at, location) if s is not None)
    return GenericsExportRequest(spec.name, descriptor, spec.type_args, tuple(dict.fromkeys(sources)))


def discover(
    input_paths: list[Path],
    annotation: str = DEFAULT_ANNOTATION,
    generics: Iterable[GenericsSpec] = (),
    jvmpath: str | None = None,
    generics_annotation: str = DEFAULT_GENERICS_ANNOTATION,
) -> Discovery:
    """
    Find the declarations to export in the inputs and build their requests.

    Generic instantiations come from *generics* and from the generics
    annotation of the file facades found in the inputs.
    Declarations that cannot be described are reported as diagnostics and skipped.
    """
    result = Discovery()
    with tempfile.TemporaryDirectory(prefix="kustom-export-") as extract_dir:
        start_jvm(classpath_entries(input_paths, Path(extract_dir)), jvmpath)

        locations: dict[str, SourceLocation] = {}
        for input_path in input_paths:
            for name, location in iter_class_names(input_path):
                locations.setdefault(name, location)
        log.info(f"Inspecting {len(locations)} classes...")

        requested: list[tuple[GenericsSpec, SourceLocation | None]] = [(s, None) for s in generics]
        for name, location in locations.items():
            try:
                cls = load_class(name)
                if is_throwable(cls):
                    result.extra_exceptions.append(translate_type_name(name))
                requested.extend((s, location) for s in read_generics_annotation(cls, generics_annotation))
                if not has_annotation(cls, annotation):
                    continue
                descriptor = describe_class(cls, location)
            except ExportError as e:
                result.diagnostics.append(Diagnostic.from_error(e.at(location)))
                continue
            except Exception as e:
                log.warning(f"Skipping {name}: {e}")
                continue
            result.requests.append(ExportRequest(descriptor, (location,)))

        for spec, requested_at in requested:
            try:
                result.requests.append(_generics_request(spec, locations, requested_at))
            except ExportError as e:
                result.diagnostics.append(Diagnostic.from_error(e))

    for d in result.diagnostics:
        log.warning(f"Skipping declaration: {d}")
    log.info(f"Found {len(result.requests)} declaration(s) to export")
    return result
