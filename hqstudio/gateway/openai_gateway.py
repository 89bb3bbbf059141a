"""OpenAI-backed generation gateway.

Scripts use Structured Outputs when the model supports them and fall back to
plain JSON mode otherwise. Artwork comes from the images API. Every call is
logged to the session's ``InteractionLogger`` when one is attached.
"""

import base64
import logging
import os
from typing import Any, Dict, List, Optional

import httpx
from openai import OpenAI

from ..config import StudioConfig
from ..errors import GenerationFailure
from ..json_sanitizer import parse_json_object, safe_json_dumps, sanitize_text
from ..logging.interaction_logger import InteractionLogger
from ..prompt_loader import render_prompt
from .base import GeneratedImage, GenerationGateway, ScriptData, sniff_mime_type

logger = logging.getLogger(__name__)

SCRIPT_FAILED = "Falha ao gerar o roteiro. A IA pode estar sobrecarregada. Tente novamente."
IMAGE_FAILED = "Falha ao gerar a imagem. A IA pode ter recusado o prompt. Tente uma ideia diferente."
NO_IMAGE = "Nenhuma imagem foi gerada."
SUGGEST_FAILED = "Não foi possível gerar uma sugestão. Tente novamente."


class OpenAIGateway(GenerationGateway):
    """Talks to the OpenAI chat and images APIs."""

    def __init__(
        self,
        config: StudioConfig,
        api_key: Optional[str] = None,
        interaction_logger: Optional[InteractionLogger] = None,
        client: Optional[OpenAI] = None,
    ) -> None:
        self.config = config
        self.client: OpenAI = client or OpenAI(
            api_key=api_key or config.api_key or os.getenv("OPENAI_API_KEY"),
            timeout=httpx.Timeout(config.request_timeout, connect=10.0),
            max_retries=0,
        )
        self.interaction_logger = interaction_logger

    # ------------------------------------------------------------------
    # Scripts
    # ------------------------------------------------------------------

    def _build_script_messages(self, prompt: str, context: str) -> List[Dict[str, str]]:
        system_prompt = render_prompt("script.system", narration_marker=self.config.narration_marker)
        if context:
            user_message = render_prompt("script.next.user", context=context, prompt=prompt)
        else:
            user_message = render_prompt("script.first.user", prompt=prompt)
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ]

    def _call_script_model(self, messages: List[Dict[str, str]]) -> str:
        """Return the raw JSON text of a script response.

        Tries ``chat.completions.parse`` with the ``ScriptData`` schema first;
        if the model or SDK cannot do structured outputs, repeats the request
        in ``json_object`` mode.
        """
        cc = self.config
        try:
            response = self.client.chat.completions.parse(
                model=cc.llm_model,
                messages=messages,
                temperature=cc.llm_temperature,
                max_tokens=cc.llm_max_tokens,
                response_format=ScriptData,
            )
            message = response.choices[0].message
            if message.parsed is not None:
                return safe_json_dumps(message.parsed.model_dump())
            if message.content:
                return message.content
        except Exception as e:
            logger.debug("Structured script output unavailable, using JSON mode: %s", e)

        response = self.client.chat.completions.create(
            model=cc.llm_model,
            messages=messages,
            temperature=cc.llm_temperature,
            max_tokens=cc.llm_max_tokens,
            response_format={"type": "json_object"},
        )
        return response.choices[0].message.content or ""

    def generate_script(self, prompt: str, context: str = "") -> ScriptData:
        messages = self._build_script_messages(prompt, context)
        raw: Optional[str] = None
        parsed: Optional[Dict[str, Any]] = None
        error: Optional[str] = None

        try:
            raw = self._call_script_model(messages)
            parsed = parse_json_object(raw)
            if parsed is None:
                raise GenerationFailure(SCRIPT_FAILED)
            if parsed.get("scene_description") is None or parsed.get("panel_text") is None:
                raise GenerationFailure("Resposta da IA inválida. Faltando dados do roteiro.")
            return ScriptData(
                scene_description=str(parsed["scene_description"]).strip(),
                panel_text=str(parsed["panel_text"]).strip(),
            )
        except GenerationFailure as e:
            error = e.message
            logger.warning("Script generation returned unusable data: %s", raw)
            raise
        except Exception as e:
            error = str(e)
            logger.error("Script generation failed: %s", e)
            raise GenerationFailure(SCRIPT_FAILED) from e
        finally:
            if self.interaction_logger:
                self.interaction_logger.log_script_generation(
                    system_prompt=messages[0]["content"],
                    user_message=messages[1]["content"],
                    response=raw,
                    parsed_response=parsed,
                    model=self.config.llm_model,
                    temperature=self.config.llm_temperature,
                    max_tokens=self.config.llm_max_tokens,
                    error_message=error,
                )

    # ------------------------------------------------------------------
    # Artwork
    # ------------------------------------------------------------------

    def _decode_image(self, item: Any) -> Optional[bytes]:
        b64 = getattr(item, "b64_json", None)
        if b64:
            return base64.b64decode(b64)
        url = getattr(item, "url", None)
        if url:
            response = httpx.get(url, timeout=self.config.request_timeout)
            response.raise_for_status()
            return response.content
        return None

    def generate_image(self, scene_description: str) -> list[GeneratedImage]:
        prompt = render_prompt("image.style", scene_description=scene_description)
        cc = self.config
        images: list[GeneratedImage] = []
        error: Optional[str] = None

        try:
            response = self.client.images.generate(
                model=cc.image_model,
                prompt=prompt,
                size=cc.image_size,
                quality=cc.image_quality,
                n=1,
            )
            for item in response.data or []:
                data = self._decode_image(item)
                if data:
                    images.append(GeneratedImage(data=data, mime_type=sniff_mime_type(data)))
            if not images:
                raise GenerationFailure(NO_IMAGE)
            return images
        except GenerationFailure as e:
            error = e.message
            raise
        except Exception as e:
            error = str(e)
            logger.error("Image generation failed: %s", e)
            raise GenerationFailure(IMAGE_FAILED) from e
        finally:
            if self.interaction_logger:
                self.interaction_logger.log_image_generation(
                    prompt=prompt,
                    model=cc.image_model,
                    size=cc.image_size,
                    quality=cc.image_quality,
                    image_count=len(images),
                    error_message=error,
                )

    # ------------------------------------------------------------------
    # Suggestions
    # ------------------------------------------------------------------

    def suggest_continuation(self, context: str) -> str:
        system_prompt = render_prompt("suggest.system")
        user_message = render_prompt("suggest.user", context=context)
        text: Optional[str] = None
        error: Optional[str] = None

        try:
            response = self.client.chat.completions.create(
                model=self.config.suggest_model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_message},
                ],
                temperature=self.config.llm_temperature,
            )
            text = sanitize_text(response.choices[0].message.content or "").strip()
            if not text:
                raise GenerationFailure(SUGGEST_FAILED)
            return text
        except GenerationFailure as e:
            error = e.message
            raise
        except Exception as e:
            error = str(e)
            logger.error("Continuation suggestion failed: %s", e)
            raise GenerationFailure(SUGGEST_FAILED) from e
        finally:
            if self.interaction_logger:
                self.interaction_logger.log_suggestion(
                    system_prompt=system_prompt,
                    user_message=user_message,
                    response=text,
                    model=self.config.suggest_model,
                    error_message=error,
                )
