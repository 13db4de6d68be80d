"""
Preprocessing orchestrator.

Sequences one run: locations, then the unified catalog, then the three
platform mappers (concurrently, over read-only inputs), then the alias
merge and the versioned snapshot. ``run_preprocess`` is the file-driven
front end used by the command line.
"""

import json
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from restaurant_unifier.config.schemas import LocationConfig, LocationsConfig, format_validation_errors, load_config
from restaurant_unifier.config.settings import PlatformFailurePolicy, RunPolicy, Settings
from restaurant_unifier.errors import SourceParseError, UnresolvedRecordError
from restaurant_unifier.matching.engine import MatchingConfig
from restaurant_unifier.models.entities import SourcePlatform
from restaurant_unifier.models.snapshot import NormalizedData, RunReport, Snapshot
from restaurant_unifier.models.sources import (
    DoorDashData, SourceData, SquareCatalogData, SquareData, SquareLocationsData, SquareOrdersData,
    SquarePaymentsData, ToastData,
)
from restaurant_unifier.parsers.base import AliasBatch, MapperContext, MapperResult
from restaurant_unifier.parsers.doordash_mapper import map_doordash_orders
from restaurant_unifier.parsers.square_mapper import map_square_orders
from restaurant_unifier.parsers.toast_mapper import map_toast_orders
from restaurant_unifier.preprocessing.catalog import UnifiedCatalog, build_unified_catalog
from restaurant_unifier.preprocessing.locations import build_locations
from restaurant_unifier.utils.logging_config import logger

ModelT = TypeVar('ModelT', bound=BaseModel)

# Platform order is also alias precedence
PLATFORM_MAPPERS: Tuple[Tuple[SourcePlatform, Callable[..., MapperResult]], ...] = (
    (SourcePlatform.TOAST, map_toast_orders),
    (SourcePlatform.DOORDASH, map_doordash_orders),
    (SourcePlatform.SQUARE, map_square_orders),
)


def square_catalog_aliases(sources: SourceData, catalog: UnifiedCatalog) -> AliasBatch:
    """Every Square catalog item name is an alias of the product it built."""
    batch = AliasBatch()
    if sources.square is None:
        return batch
    for obj in sources.square.catalog.objects:
        if obj.type == 'ITEM' and obj.item_data:
            product_id = catalog.product_map.get(obj.id)
            if product_id:
                batch.add(product_id, obj.item_data.name, SourcePlatform.SQUARE)
    return batch


def merge_alias_batches(batches: Iterable[AliasBatch]) -> AliasBatch:
    """Merges batches in order; the first batch to register a key wins."""
    merged = AliasBatch()
    for batch in batches:
        merged.extend(batch)
    return merged


def run_mappers(
    sources: SourceData,
    context: MapperContext,
    failure_policy: PlatformFailurePolicy = PlatformFailurePolicy.ABORT,
) -> Tuple[List[MapperResult], Dict[str, str]]:
    """
    Runs one mapper task per available platform and joins them.

    Returns:
        Results in platform order, and the platforms that failed under the
        CONTINUE policy with their error messages.

    Raises:
        UnresolvedRecordError, SourceParseError: Under the ABORT policy.
    """
    tasks = [
        (platform, mapper, getattr(sources, platform.value))
        for platform, mapper in PLATFORM_MAPPERS
        if getattr(sources, platform.value) is not None
    ]
    results: List[MapperResult] = []
    failures: Dict[str, str] = {}
    if not tasks:
        return results, failures

    with ThreadPoolExecutor(max_workers=len(tasks)) as executor:
        futures = [(platform, executor.submit(mapper, data, context)) for platform, mapper, data in tasks]

        for platform, future in futures:
            try:
                results.append(future.result())
            except (UnresolvedRecordError, SourceParseError) as e:
                if failure_policy == PlatformFailurePolicy.ABORT:
                    raise
                logger.error(f"{platform.value} mapping failed, continuing without it: {e}")
                failures[platform.value] = str(e)

    return results, failures


def preprocess_data(
    sources: SourceData,
    location_configs: Sequence[LocationConfig],
    matching: MatchingConfig,
    policy: RunPolicy = RunPolicy(),
    load_failures: Optional[Dict[str, str]] = None,
) -> Snapshot:
    """
    Produces a complete snapshot from parsed source documents.

    Args:
        sources: Parsed platform exports; a platform that failed to load is None.
        location_configs: The configured restaurants.
        matching: Compiled variation patterns and product groups.
        policy: Unresolved-product and platform-failure policies.
        load_failures: Platforms that already failed while loading.
    """
    logger.info("Starting preprocessing run")

    locations, location_map = build_locations(sources, location_configs)
    catalog = build_unified_catalog(sources, matching)
    context = MapperContext.build(location_map, catalog, matching, policy.unresolved)

    results, failures = run_mappers(sources, context, policy.platform_failure)
    failures = {**(load_failures or {}), **failures}

    aliases = merge_alias_batches(
        [square_catalog_aliases(sources, catalog)] + [result.aliases for result in results]
    )

    normalized = NormalizedData(
        locations=locations,
        categories=catalog.categories,
        products=catalog.products,
        product_variations=catalog.variations,
        product_aliases=list(aliases),
        orders=[o for result in results for o in result.orders],
        order_items=[i for result in results for i in result.items],
        payments=[p for result in results for p in result.payments],
    )
    report = RunReport(
        entity_counts=normalized.entity_counts(),
        platform_stats={result.platform.value: result.stats for result in results},
        failed_platforms=failures,
    )
    for line in report.summary_lines():
        logger.info(line)

    return Snapshot(normalized=normalized, report=report)


def read_json(path: Union[str, Path], platform: str):
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise SourceParseError(platform, f"Cannot read {path}: {e}") from e


def parse_document(path: Union[str, Path], schema: Type[ModelT], platform: str) -> ModelT:
    try:
        return schema.model_validate(read_json(path, platform))
    except ValidationError as e:
        raise SourceParseError(platform, f"Unexpected shape in {path}:\n{format_validation_errors(e)}") from e


def _load_square(settings: Settings) -> SquareData:
    platform = SourcePlatform.SQUARE.value
    return SquareData(
        locations=parse_document(settings.square_locations_path, SquareLocationsData, platform),
        catalog=parse_document(settings.square_catalog_path, SquareCatalogData, platform),
        orders=parse_document(settings.square_orders_path, SquareOrdersData, platform),
        payments=parse_document(settings.square_payments_path, SquarePaymentsData, platform),
    )


def load_sources(settings: Settings) -> Tuple[SourceData, Dict[str, str]]:
    """
    Reads every platform export named in the settings.

    Under the CONTINUE failure policy an unreadable platform is left out
    and reported; under ABORT the first SourceParseError propagates.
    """
    loaders = {
        SourcePlatform.TOAST: lambda: parse_document(settings.toast_pos_path, ToastData, SourcePlatform.TOAST.value),
        SourcePlatform.DOORDASH: lambda: parse_document(
            settings.doordash_orders_path, DoorDashData, SourcePlatform.DOORDASH.value
        ),
        SourcePlatform.SQUARE: lambda: _load_square(settings),
    }

    loaded = {}
    failures: Dict[str, str] = {}
    for platform, loader in loaders.items():
        try:
            loaded[platform.value] = loader()
        except SourceParseError as e:
            if settings.policy.platform_failure == PlatformFailurePolicy.ABORT:
                raise
            logger.error(f"Skipping {platform.value}: {e}")
            failures[platform.value] = str(e)

    return SourceData(**loaded), failures


@dataclass(frozen=True)
class PreprocessOutcome:
    sources: SourceData
    snapshot: Snapshot


def run_preprocess(settings: Settings) -> PreprocessOutcome:
    """
    Loads configuration and sources from disk and runs the preprocessor.

    Configuration is loaded and validated before any source record is read;
    a ConfigurationError leaves nothing half-done.
    """
    locations = load_config(settings.locations_path, LocationsConfig, 'locations')
    matching = MatchingConfig.from_files(settings.variation_patterns_path, settings.product_groups_path)

    sources, load_failures = load_sources(settings)
    snapshot = preprocess_data(sources, locations.locations, matching, settings.policy, load_failures)
    return PreprocessOutcome(sources=sources, snapshot=snapshot)
