"""Spreadsheet import pipeline: read rows, validate, resolve references, upsert.

Each entity supplies an `Importer` holding an `ImportDescriptor` (natural key,
required columns, references, row schema, write mode, chunk size). Row-level
problems never abort the run; they are counted and reported in `ImportResult`.
Database errors do abort it, after the chunks already committed.
"""

import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import PurePath
from typing import Any, Annotated, Callable, Iterable, Iterator, Literal, Optional

from openpyxl import load_workbook
from pydantic import BaseModel, BeforeValidator, ConfigDict, ValidationError
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from retailhub.common.exceptions import ImportFileError, ImportFileTooLargeError
from retailhub.common.models import utcnow
from retailhub.common.text import snake_heading

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 10 * 1024 * 1024
SUPPORTED_EXTENSIONS = (".csv", ".xlsx")


# ── Cell coercion ──


def _blank_to_none(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _to_text(value: Any) -> Any:
    value = _blank_to_none(value)
    if value is None or isinstance(value, str):
        return value
    # Spreadsheet numbers: 12345.0 -> "12345"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _to_number(value: Any) -> Any:
    value = _blank_to_none(value)
    if isinstance(value, str):
        return value.replace(",", "")
    return value


_CLOCK_FORMATS = ("%H:%M", "%H:%M:%S", "%I:%M %p", "%I:%M:%S %p", "%I:%M%p", "%I %p")


def _to_day(value: Any) -> Any:
    value = _blank_to_none(value)
    if isinstance(value, datetime):
        return value.date()
    return value


def _to_clock(value: Any) -> Any:
    value = _blank_to_none(value)
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, str):
        for fmt in _CLOCK_FORMATS:
            try:
                return datetime.strptime(value.upper(), fmt).time()
            except ValueError:
                continue
    return value


Text = Annotated[Optional[str], BeforeValidator(_to_text)]
Number = Annotated[Optional[float], BeforeValidator(_to_number)]
Integer = Annotated[Optional[int], BeforeValidator(_to_number)]
Flag = Annotated[Optional[bool], BeforeValidator(_blank_to_none)]
Day = Annotated[Optional[date], BeforeValidator(_to_day)]
Clock = Annotated[Optional[time], BeforeValidator(_to_clock)]


class ImportRow(BaseModel):
    """Base for per-entity row schemas. Unknown columns are ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# ── File reading ──


def _is_empty(row: dict[str, Any]) -> bool:
    return all(_blank_to_none(v) is None for v in row.values())


def _rows_from_csv(content: bytes) -> Iterator[dict[str, Any]]:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ImportFileError("CSV files must be UTF-8 encoded") from exc
    reader = csv.reader(io.StringIO(text))
    headings = next(reader, None)
    if not headings or not any(h.strip() for h in headings):
        raise ImportFileError("The file has no heading row")
    keys = [snake_heading(h) for h in headings]
    for values in reader:
        yield {k: v for k, v in zip(keys, values) if k}


def _rows_from_xlsx(content: bytes) -> Iterator[dict[str, Any]]:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as exc:
        raise ImportFileError("Could not open the spreadsheet") from exc
    try:
        rows = workbook.active.iter_rows(values_only=True)
        headings = next(rows, None)
        if not headings or all(h is None for h in headings):
            raise ImportFileError("The file has no heading row")
        keys = [snake_heading(h) for h in headings]
        for values in rows:
            yield {k: v for k, v in zip(keys, values) if k}
    finally:
        workbook.close()


def read_rows(
    filename: str, content: bytes, max_bytes: int = DEFAULT_MAX_BYTES
) -> Iterator[dict[str, Any]]:
    """Heading-mapped rows of an uploaded CSV or XLSX file.

    Headings are normalised to lower_snake_case. Empty rows are yielded
    too so row numbers stay aligned with the sheet.
    """
    if len(content) > max_bytes:
        raise ImportFileTooLargeError(
            f"File exceeds the {max_bytes // (1024 * 1024)} MB import limit"
        )
    extension = PurePath(filename or "").suffix.lower()
    if extension == ".csv":
        return _rows_from_csv(content)
    if extension == ".xlsx":
        return _rows_from_xlsx(content)
    raise ImportFileError(
        f"Unsupported file type '{extension or filename}'; upload CSV or XLSX"
    )


# ── Results ──


@dataclass
class RowError:
    row: int
    messages: list[str]


@dataclass
class ImportResult:
    imported: int = 0
    skipped: int = 0
    errors: list[RowError] = field(default_factory=list)


class RowSkipped(Exception):
    """Raised by an importer to drop one row with a reason."""

    def __init__(self, *messages: str):
        self.messages = list(messages)
        super().__init__("; ".join(messages))


# ── Descriptors and importers ──

OnMissing = Literal["create", "skip", "null"]


@dataclass(frozen=True)
class Reference:
    """How one row column resolves to a foreign key.

    The cell is matched against `lookup` on `model`, narrowed by the
    constant `where` filters and by `scope`, which maps a model column to
    the target of a reference resolved earlier in the same row. An
    unmatched value skips the row, leaves `target` empty, or creates a
    new `model` row, as `on_missing` says. Values in `ignore` count as
    blank.
    """

    model: type
    target: str
    lookup: str = "name"
    on_missing: OnMissing = "null"
    where: dict[str, Any] = field(default_factory=dict)
    scope: dict[str, str] = field(default_factory=dict)
    ignore: tuple[str, ...] = ()
    defaults: Optional[Callable[[Any], dict[str, Any]]] = None


@dataclass(frozen=True)
class ImportDescriptor:
    """Declarative part of an importer.

    `key_required` is False for entities whose natural key is optional;
    rows without it are plain inserts. Insert-only entities have no
    natural key and must be written row by row. `dependencies` maps a row
    column to the `Reference` that resolves it; the pipeline resolves them
    in order before the importer sees the row.
    """

    entity: str
    model: type
    natural_key: Optional[str]
    schema: type[ImportRow]
    required: tuple[str, ...] = ()
    mode: Literal["batch_upsert", "each_row"] = "batch_upsert"
    chunk_size: int = 1000
    key_required: bool = True
    dependencies: dict[str, Reference] = field(default_factory=dict)


@dataclass
class ImportContext:
    session: AsyncSession
    user_id: Optional[int] = None
    lookups: dict[str, Any] = field(default_factory=dict)
    resolved: dict[tuple, int] = field(default_factory=dict)


def _reference_filters(ref: Reference, value: Any, scope: dict) -> dict[str, Any]:
    return {**ref.where, **scope, ref.lookup: value}


def _cache_key(ref: Reference, filters: dict[str, Any]) -> tuple:
    return (ref.model.__tablename__, tuple(sorted(filters.items())))


async def _find_reference(
    ctx: ImportContext, ref: Reference, value: Any, scope: dict
) -> Optional[int]:
    filters = _reference_filters(ref, value, scope)
    key = _cache_key(ref, filters)
    if key in ctx.resolved:
        return ctx.resolved[key]
    stmt = select(ref.model.id)
    for column, expected in filters.items():
        stmt = stmt.where(getattr(ref.model, column) == expected)
    found = (await ctx.session.execute(stmt.limit(1))).scalar_one_or_none()
    # Misses are not cached; a later row may create the referenced record.
    if found is not None:
        ctx.resolved[key] = found
    return found


async def _create_reference(ctx: ImportContext, ref: Reference, value: Any, scope: dict) -> int:
    filters = _reference_filters(ref, value, scope)
    defaults = ref.defaults(value) if ref.defaults else {}
    instance = ref.model(**{**defaults, **filters})
    ctx.session.add(instance)
    await ctx.session.flush()
    ctx.resolved[_cache_key(ref, filters)] = instance.id
    return instance.id


async def resolve_references(
    ctx: ImportContext, descriptor: ImportDescriptor, row: ImportRow
) -> dict[str, Optional[int]]:
    """Ids for every declared dependency of `row`, keyed by reference target.

    Raises RowSkipped naming each unmatched "skip" reference.
    """
    resolved: dict[str, Optional[int]] = {}
    problems = []
    for column, ref in descriptor.dependencies.items():
        value = getattr(row, column)
        resolved[ref.target] = None
        if value is None or value in ref.ignore:
            continue
        scope = {col: resolved.get(target) for col, target in ref.scope.items()}
        if any(v is None for v in scope.values()):
            found = None
        else:
            found = await _find_reference(ctx, ref, value, scope)
        if found is None:
            if ref.on_missing == "skip":
                problems.append(f"{column}: '{value}' not found in {ref.model.__tablename__}")
                continue
            if ref.on_missing == "create" and all(v is not None for v in scope.values()):
                found = await _create_reference(ctx, ref, value, scope)
            else:
                logger.info(
                    "Reference not found; left empty",
                    extra={"entity": descriptor.entity, "column": column, "value": str(value)},
                )
        resolved[ref.target] = found
    if problems:
        raise RowSkipped(*problems)
    return resolved


class Importer:
    """Entity-specific behaviour around a descriptor."""

    descriptor: ImportDescriptor

    async def prepare(self, ctx: ImportContext) -> None:
        """Load lookup tables once per run."""

    async def to_values(
        self, ctx: ImportContext, row: Any, refs: dict[str, Optional[int]]
    ) -> dict[str, Any]:
        """Column values for the target row. Raise RowSkipped to drop the row."""
        raise NotImplementedError

    async def handle_row(
        self, ctx: ImportContext, row: Any, refs: dict[str, Optional[int]]
    ) -> None:
        """Write one row immediately (each-row mode)."""
        values = await self.to_values(ctx, row, refs)
        await upsert_one(ctx.session, self.descriptor.model, self.descriptor.natural_key, values)


def _insert_for(session: AsyncSession):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise NotImplementedError(f"Batch upsert is not supported on {dialect}")


async def upsert_many(
    session: AsyncSession, model: type, key: str, rows: list[dict[str, Any]]
) -> int:
    """`INSERT ... ON CONFLICT (key) DO UPDATE` for one chunk of rows."""
    if not rows:
        return 0
    # Last row wins when the chunk repeats a key.
    deduped = list({row[key]: row for row in rows}.values())
    now = utcnow()
    columns = sorted({col for row in deduped for col in row})
    values = [
        {**{col: row.get(col) for col in columns}, "created_at": now, "updated_at": now}
        for row in deduped
    ]
    insert = _insert_for(session)
    stmt = insert(model).values(values)
    update_columns = {col: stmt.excluded[col] for col in columns if col != key}
    update_columns["updated_at"] = stmt.excluded.updated_at
    stmt = stmt.on_conflict_do_update(index_elements=[key], set_=update_columns)
    await session.execute(stmt)
    return len(deduped)


async def upsert_one(
    session: AsyncSession, model: type, key: str, values: dict[str, Any]
):
    """Update the row matching `values[key]` or add a new one; returns the instance."""
    instance = None
    if values.get(key) is not None:
        instance = (
            await session.execute(
                select(model).where(getattr(model, key) == values[key])
            )
        ).scalar_one_or_none()
    if instance is None:
        instance = model(**values)
        session.add(instance)
    else:
        for column, value in values.items():
            setattr(instance, column, value)
    await session.flush()
    return instance


def _format_validation(exc: ValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "row"
        messages.append(f"{location}: {error['msg']}")
    return messages


class ImportPipeline:
    """Runs one importer over a stream of heading-mapped rows.

    Every full chunk is committed on its own: a failure part way through a
    file keeps the chunks already written and propagates to the caller.
    """

    def __init__(self, importer: Importer, chunk_size: Optional[int] = None):
        self.importer = importer
        self.descriptor = importer.descriptor
        self.chunk_size = chunk_size or self.descriptor.chunk_size

    def _missing_required(self, row: ImportRow) -> list[str]:
        d = self.descriptor
        required = list(d.required)
        if d.key_required and d.natural_key not in required:
            required.insert(0, d.natural_key)
        return [f"{column}: field required" for column in required if getattr(row, column) is None]

    async def run(
        self,
        session: AsyncSession,
        rows: Iterable[dict[str, Any]],
        user_id: Optional[int] = None,
    ) -> ImportResult:
        ctx = ImportContext(session=session, user_id=user_id)
        await self.importer.prepare(ctx)
        result = ImportResult()
        batch: list[dict[str, Any]] = []
        pending = 0

        # Row 1 is the heading row.
        for number, raw in enumerate(rows, start=2):
            if _is_empty(raw):
                continue
            try:
                row = self.descriptor.schema.model_validate(raw)
            except ValidationError as exc:
                self._skip(result, number, _format_validation(exc))
                continue
            missing = self._missing_required(row)
            if missing:
                self._skip(result, number, missing)
                continue

            try:
                refs = await resolve_references(ctx, self.descriptor, row)
                if self.descriptor.mode == "batch_upsert":
                    batch.append(await self.importer.to_values(ctx, row, refs))
                else:
                    await self.importer.handle_row(ctx, row, refs)
                    pending += 1
            except RowSkipped as exc:
                self._skip(result, number, exc.messages)
                continue

            if len(batch) >= self.chunk_size:
                result.imported += await self._write_batch(session, batch)
                batch = []
            elif pending >= self.chunk_size:
                await session.commit()
                result.imported += pending
                pending = 0

        if batch:
            result.imported += await self._write_batch(session, batch)
        await session.commit()
        result.imported += pending
        logger.info(
            "Import finished",
            extra={
                "entity": self.descriptor.entity,
                "imported": result.imported,
                "skipped": result.skipped,
            },
        )
        return result

    async def _write_batch(self, session: AsyncSession, batch: list[dict[str, Any]]) -> int:
        written = await upsert_many(
            session, self.descriptor.model, self.descriptor.natural_key, batch
        )
        await session.commit()
        return written

    def _skip(self, result: ImportResult, number: int, messages: list[str]) -> None:
        result.skipped += 1
        result.errors.append(RowError(row=number, messages=messages))
        logger.warning(
            "Skipped import row",
            extra={"entity": self.descriptor.entity, "row": number, "reasons": messages},
        )
