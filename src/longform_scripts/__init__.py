"""
Long-form Scripts – outline-driven chunked generation of long video scripts.

  from longform_scripts.application.pipeline import LongFormScriptPipeline
  from longform_scripts.adapters import default_adapters
  from longform_scripts.domain.models import ScriptRequest

  pipeline = LongFormScriptPipeline(**default_adapters())
  result = pipeline.run(ScriptRequest(title="...", topic="...", duration_seconds=40 * 60))

For tests or another provider: implement ports.ITextGenerator and inject it
as text_generator.
"""

__version__ = "0.2.0"
