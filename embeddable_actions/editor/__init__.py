from .event_editor import EditorState, EventEditor

__all__ = ['EditorState', 'EventEditor']
