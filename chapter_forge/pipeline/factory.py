from ..agents import CorrectorAgent, JudgeAgent, ReaderEvaluator, ReaderJury, RetakeAgent, WriterAgent
from ..compliance import ComplianceChecker
from ..config import Config
from ..llm.client import LLMClient
from ..prompts import DEFAULT_VOICE
from ..synthesis import SynthesisAgent, SynthesisAnalyzer, SynthesisExecutor, SynthesizerV2
from .context import PipelineDeps


def build_deps(config: Config, llm: LLMClient) -> PipelineDeps:
    """Wire the LLM-backed agents described by ``config`` around one shared client."""
    voice = config.voice or DEFAULT_VOICE
    jury = ReaderJury(
        [ReaderEvaluator(llm, persona) for persona in config.reader_jury.personas],
        passing_threshold=config.reader_jury.passing_threshold,
    )
    if config.synthesis.mode == "plan":
        synthesizer, synthesizer_v2 = None, SynthesizerV2(
            SynthesisAnalyzer(llm), SynthesisExecutor(llm, voice=voice)
        )
    else:
        synthesizer, synthesizer_v2 = SynthesisAgent(llm, voice=voice), None

    return PipelineDeps(
        writers=[WriterAgent(llm, persona) for persona in config.tournament.writers],
        judge_factory=lambda: JudgeAgent(llm),
        checker=ComplianceChecker.from_config(config.compliance, llm),
        corrector=CorrectorAgent(llm, voice=voice),
        retaker=RetakeAgent(llm, voice=voice),
        reader_jury=jury,
        synthesizer=synthesizer,
        synthesizer_v2=synthesizer_v2,
        config=config,
        token_counter=lambda: llm.total_tokens,
    )
