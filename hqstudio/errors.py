"""Error kinds surfaced to the user.

Every error carries a single human-readable message that the web layer shows
in the dismissible banner. None of them is fatal to the session.
"""


class StudioError(Exception):
    """Base class for user-facing failures."""

    default_message = "Ocorreu um erro desconhecido."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(StudioError):
    """Blank or otherwise unusable user input, caught before any model call."""

    default_message = "Por favor, digite uma ideia!"


class GenerationFailure(StudioError):
    """Text or image generation failed or returned unusable data."""

    default_message = "Falha ao gerar o painel. A IA pode estar sobrecarregada. Tente novamente."


class InvalidGenerationResult(GenerationFailure):
    """The model answered, but the answer is missing required content."""

    default_message = "Resposta da IA inválida. Faltando dados do roteiro."


class ExportFailure(StudioError):
    """Rendering the strip or assembling the document failed."""

    default_message = "Não foi possível gerar o PDF. Tente novamente."


class SessionBusy(StudioError):
    """Another action is still running for this session."""

    default_message = "Aguarde a ação atual terminar."
