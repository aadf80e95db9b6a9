"""Localization engine: locale resolution and placeholder template rendering.

Resolves the text of a translation key for a locale and renders templated
texts with named or positional arguments, including locale-sensitive
plural, select and selectordinal sub-messages.

Main components:
- models: LocaleTag, TranslationKey, TranslationEntry
- parser / evaluator: template language and rendering
- plurals / formatting: plural categories and number formatting (Babel)
- catalog: Catalog, Group, TranslationUnit, TextVariant
- resolvers: LocaleResolver and LanguageNegotiator
- manager: TranslationManager and TranslationConfiguration
- units: BoundUnit and TemplatedBoundUnit bindings
- loader: format adapters and CatalogLoader
"""

from localization.cache import MISSING, PlaceholderValueCache
from localization.catalog import Catalog, Group, TextVariant, TranslationUnit
from localization.evaluator import ArgumentLookup, render, render_template
from localization.exceptions import (
    CatalogError,
    CatalogFrozenError,
    CatalogLoadError,
    DuplicateKeyError,
    DuplicateVariantError,
    InvalidKeyError,
    InvalidLocaleError,
    LocalizationError,
    MissingOtherCaseError,
    MissingOtherCaseLoadError,
    TemplateLoadError,
    TemplateSyntaxError,
)
from localization.formatting import format_number
from localization.hooks import (
    Channel,
    HookChain,
    LocaleChangedEvent,
    PlaceholderValueNeededEvent,
    ValueFoundEvent,
    ValueNeededEvent,
    ValueNotFoundEvent,
)
from localization.loader import (
    CatalogAdapter,
    CatalogLoader,
    JSONCatalogAdapter,
    YAMLCatalogAdapter,
    get_adapter,
    register_adapter,
    supported_extensions,
)
from localization.manager import TranslationConfiguration, TranslationManager
from localization.models import LocaleTag, TranslationEntry, TranslationKey
from localization.parser import looks_templated, parse
from localization.plurals import PluralRules, cardinal_category, default_rules, ordinal_category
from localization.resolvers import LanguageNegotiator, LocaleResolver, parse_accept_language
from localization.units import BoundUnit, TemplatedBoundUnit, ValueChangedEvent

__all__ = [
    "MISSING",
    "ArgumentLookup",
    "BoundUnit",
    "Catalog",
    "CatalogAdapter",
    "CatalogError",
    "CatalogFrozenError",
    "CatalogLoadError",
    "CatalogLoader",
    "Channel",
    "DuplicateKeyError",
    "DuplicateVariantError",
    "Group",
    "HookChain",
    "InvalidKeyError",
    "InvalidLocaleError",
    "JSONCatalogAdapter",
    "LanguageNegotiator",
    "LocaleChangedEvent",
    "LocaleResolver",
    "LocaleTag",
    "LocalizationError",
    "MissingOtherCaseError",
    "MissingOtherCaseLoadError",
    "PlaceholderValueCache",
    "PlaceholderValueNeededEvent",
    "PluralRules",
    "TemplateLoadError",
    "TemplateSyntaxError",
    "TemplatedBoundUnit",
    "TextVariant",
    "TranslationConfiguration",
    "TranslationEntry",
    "TranslationKey",
    "TranslationManager",
    "TranslationUnit",
    "ValueChangedEvent",
    "ValueFoundEvent",
    "ValueNeededEvent",
    "ValueNotFoundEvent",
    "YAMLCatalogAdapter",
    "cardinal_category",
    "default_rules",
    "format_number",
    "get_adapter",
    "looks_templated",
    "ordinal_category",
    "parse",
    "parse_accept_language",
    "register_adapter",
    "render",
    "render_template",
    "supported_extensions",
]
