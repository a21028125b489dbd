"""
Shared sample documents and test doubles.
"""

import re
import zlib

import numpy as np

# ============================================
# Sample Documents
# ============================================

IBUPROFENO_SECTION = """IBUPROFENO

Nombre comercial: Advil, Motrin
Grupo terapéutico: Antiinflamatorio no esteroideo
Indicaciones:
- Dolor leve a moderado
- Fiebre
Dosis adultos: 400 mg cada 6 a 8 horas
Dosis pediátrica: 5 a 10 mg/kg cada 6 a 8 horas
Contraindicaciones:
- Úlcera péptica activa
- Insuficiencia renal grave
Interacciones:
Aspirina: riesgo de sangrado
Efectos adversos: náuseas, dispepsia
Embarazo: evitar en el tercer trimestre"""

ASPIRINA_SECTION = """ASPIRINA

Nombre comercial: Bayer
Indicaciones:
- Prevención cardiovascular
- Dolor leve
Dosis adultos: 100 mg al día"""

WARFARINA_SECTION = """WARFARINA

Nombre comercial: Coumadin
Indicaciones:
- Prevención de tromboembolismo
Interacciones:
- Ibuprofeno: aumenta el riesgo de hemorragia (severidad: grave)
- Paracetamol: potencia el efecto anticoagulante"""

SAMPLE_VADEMECUM_TEXT = "\n\n".join([IBUPROFENO_SECTION, ASPIRINA_SECTION])


# ============================================
# Test Doubles
# ============================================


class FakeEmbedder:
    """Deterministic bag-of-words embedder.

    Each lowercase token is hashed into one of `dim` buckets; texts sharing
    words get a positive cosine similarity. Records every embedded text.
    """

    def __init__(self, dim: int = 384):
        self.dim = dim
        self.calls: list[str] = []

    def vector(self, text: str) -> list[float]:
        vec = np.zeros(self.dim)
        for token in re.findall(r"\w+", text.lower()):
            vec[zlib.crc32(token.encode("utf-8")) % self.dim] += 1.0
        norm = np.linalg.norm(vec)
        if norm:
            vec = vec / norm
        return [float(v) for v in vec]

    async def embed(self, text: str, cache: bool = True) -> list[float]:
        self.calls.append(text)
        return self.vector(text)

    async def close(self) -> None:
        return None

