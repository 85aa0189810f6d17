"""Editable state: the options document store (``EditorSession`` lives in ``state.session``)."""

from flexlm_options.state.document import OptionsDocument

__all__ = ["OptionsDocument"]
