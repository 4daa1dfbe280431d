# agentry: tool-using chat agent over OpenAI-compatible completion endpoints.
# Typical use: `import agentry as ag` then ag.agent.create_chat_for_agent("research").

from . import common
from . import llm
from . import agent
from . import console

__version__ = "0.1.0"
