"""Bundled lesson content (YAML files loaded by `LessonCatalog.from_package`)."""
