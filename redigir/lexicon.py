"""Portuguese lexicon tables shared by the local rules, fallback and prompt builder.

All keys are lowercase; callers handle case preservation themselves.
"""

from __future__ import annotations

# Everyday word -> academic register (applied locally for simple/medium difficulty)
ACADEMIC_VOCABULARY: dict[str, str] = {
    "problema": "problemática",
    "importante": "fundamental",
    "grande": "significativo",
    "mostrar": "evidenciar",
    "fazer": "promover",
    "usar": "utilizar",
    "ter": "possuir",
    "coisa": "aspecto",
    "muito": "deveras",
    "pessoa": "indivíduo",
    "grupo": "coletividade",
    "lugar": "ambiente",
}

# Basic connective -> formal connective. Multi-word keys are matched first.
CONNECTIVE_UPGRADES: dict[str, str] = {
    "além disso": "ademais",
    "por isso": "por conseguinte",
    "porque": "uma vez que",
    "também": "outrossim",
    "mas": "contudo",
}

# Connectives that, at the start of a sentence, mean it is already linked
SENTENCE_OPENERS = (
    "ademais", "outrossim", "dessarte", "portanto", "contudo", "entretanto",
    "todavia", "além disso", "assim", "logo", "por conseguinte", "em suma",
    "é evidente que", "nesse sentido", "por fim", "desse modo", "dessa forma",
)

CONNECTIVE_CATEGORIES: dict[str, tuple[str, ...]] = {
    "adição": ("além disso", "ademais", "outrossim", "também", "bem como"),
    "oposição": ("contudo", "entretanto", "todavia", "no entanto", "embora"),
    "conclusão": ("portanto", "dessarte", "logo", "por conseguinte", "em suma"),
    "causa": ("porque", "uma vez que", "visto que", "já que", "porquanto"),
    "exemplificação": ("por exemplo", "a saber", "isto é", "como"),
}

# Fallback formality tables
FORMAL_UPGRADES: dict[str, str] = {
    "muito": "bastante",
    "coisa": "elemento",
    "bom": "adequado",
    "ruim": "inadequado",
    "fazer": "realizar",
    "ver": "observar",
    "achar": "considerar",
    "pegar": "obter",
    "usar": "utilizar",
    "mostrar": "demonstrar",
}

INFORMAL_DOWNGRADES: dict[str, str] = {
    "bastante": "muito",
    "elemento": "coisa",
    "adequado": "bom",
    "inadequado": "ruim",
    "realizar": "fazer",
    "observar": "ver",
    "considerar": "achar",
    "obter": "pegar",
    "utilizar": "usar",
    "demonstrar": "mostrar",
}

SYNONYMS: dict[str, str] = {
    "bom": "excelente",
    "ruim": "inadequado",
    "grande": "amplo",
    "pequeno": "reduzido",
    "importante": "relevante",
    "problema": "desafio",
    "mostrar": "demonstrar",
    "fazer": "realizar",
    "usar": "empregar",
    "começar": "iniciar",
    "acabar": "concluir",
    "ajudar": "auxiliar",
}

ANTONYMS: dict[str, str] = {
    "bom": "ruim",
    "ruim": "bom",
    "grande": "pequeno",
    "pequeno": "grande",
    "fácil": "difícil",
    "difícil": "fácil",
    "positivo": "negativo",
    "negativo": "positivo",
    "aumentar": "diminuir",
    "diminuir": "aumentar",
    "sempre": "nunca",
    "nunca": "sempre",
    "melhor": "pior",
    "pior": "melhor",
}

# Structural connective sets: family -> sub-type -> connectives. "default" is
# used for unknown or missing sub-types.
STRUCTURE_CONNECTIVES: dict[str, dict[str, tuple[str, ...]]] = {
    "causal_structure": {
        "tese-argumento": ("uma vez que", "visto que", "posto que"),
        "problema-causa": ("em virtude de", "devido a", "em razão de"),
        "topico-consequencia": ("consequentemente", "por conseguinte", "em decorrência disso"),
        "causa-observacao": ("dado que", "haja vista", "porquanto"),
        "efeito-analise": ("portanto", "logo", "dessa forma"),
        "fator-impacto": ("em função de", "por causa de", "graças a"),
        "origem-desenvolvimento": ("a partir de", "desde que", "com base em"),
        "default": ("uma vez que", "consequentemente", "portanto"),
    },
    "comparative_structure": {
        "comparacao-paralela": ("assim como", "da mesma forma que", "tal qual"),
        "forma-similar": ("de modo semelhante", "analogamente", "igualmente"),
        "condicional-se": ("se", "caso", "desde que"),
        "medida-proporcional": ("à medida que", "à proporção que", "quanto mais"),
        "enquanto-outro": ("enquanto", "ao passo que", "por outro lado"),
        "tanto-quanto": ("tanto quanto", "tanto como", "não só... mas também"),
        "diferente-de": ("diferentemente de", "ao contrário de", "em contraste com"),
        "semelhanca-de": ("à semelhança de", "como", "similarmente a"),
        "default": ("assim como", "enquanto", "da mesma forma que"),
    },
    "opposition_structure": {
        "embora-oposicao": ("embora", "ainda que", "mesmo que"),
        "apesar-concessao": ("apesar de", "não obstante", "a despeito de"),
        "conforme-evidencia": ("conforme", "segundo", "consoante"),
        "exemplo-confirmacao": ("por exemplo", "como comprova", "a exemplo de"),
        "no-entanto": ("no entanto", "todavia", "porém"),
        "contudo": ("contudo", "entretanto", "porém"),
        "por-sua-vez": ("por sua vez", "em contrapartida", "por outro lado"),
        "entretanto": ("entretanto", "no entanto", "contudo"),
        "default": ("embora", "contudo", "no entanto"),
    },
}


def structure_connectives(family: str, sub_type: str | None) -> tuple[str, ...]:
    """Connective set for a structural family and sub-type (unknown sub-types use the default)."""
    table = STRUCTURE_CONNECTIVES[family]
    if sub_type and sub_type in table:
        return table[sub_type]
    return table["default"]
