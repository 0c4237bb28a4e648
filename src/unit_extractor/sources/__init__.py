from unit_extractor.sources.combined import combine_file_contents, parse_combined_code
from unit_extractor.sources.discovery import discover_source_files
from unit_extractor.sources.languages import detect_language, detect_primary_language, is_irrelevant_path

__all__ = [
    "combine_file_contents",
    "detect_language",
    "detect_primary_language",
    "discover_source_files",
    "is_irrelevant_path",
    "parse_combined_code",
]
