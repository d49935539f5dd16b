import httpx
from openai import AsyncOpenAI

from taskpilot.config import Config
from taskpilot.utils.logger import setup_logger

logger = setup_logger(__name__)

SYSTEM_PROMPT = (
    "You are a coding assistant working through a plan one task at a time. "
    "Report problems on a line starting with 'Error:' and confirm when a task is done."
)


class OpenAIService:
    """Reasoning engine backed by an OpenAI-compatible chat completion endpoint."""

    def __init__(self, client=None):
        logger.info(
            f"Connecting to reasoning engine at {Config.LLM_BASE_URL} with model {Config.LLM_MODEL}"
        )
        self.model = Config.LLM_MODEL
        if client is not None:
            self.client = client
            return

        try:
            timeout = httpx.Timeout(
                connect=30.0,
                read=Config.LLM_TIMEOUT,
                write=30.0,
                pool=30.0,
            )
            self.client = AsyncOpenAI(
                base_url=Config.LLM_BASE_URL,
                api_key=Config.LLM_API_KEY,
                timeout=timeout,
            )
        except Exception as e:
            logger.critical(
                f"Failed to initialize OpenAI client: {str(e)}", exc_info=True
            )
            raise e

    async def create_chat_completion_simple(self, messages) -> str:
        """Non-streaming completion, returns the message text."""
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            stream=False,
        )
        if response.usage:
            logger.debug(
                f"Completion usage: {response.usage.prompt_tokens} prompt, "
                f"{response.usage.completion_tokens} completion tokens"
            )
        return response.choices[0].message.content or ""

    async def query(self, prompt: str) -> str:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        logger.info(f"Querying engine: {prompt[:50]}...")
        return await self.create_chat_completion_simple(messages)
