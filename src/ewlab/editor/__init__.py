from ewlab.editor.session import EditorSession  # noqa: F401
from ewlab.editor.state import Deleting, Drawing, Mode, Selecting  # noqa: F401
