"""Options file text rendering."""

from flexlm_options.export.options_writer import (
    directive_to_line,
    export_options,
    format_product_part,
    write_options_file,
)

__all__ = ["directive_to_line", "export_options", "format_product_part", "write_options_file"]
