"""
Review Keyword Lexicon (Deterministic)
======================================

Every keyword heuristic of the pipeline as data: comment categories,
recurring positive/negative themes, deep-analysis aspects and the
highlight/problem notes attached to tiered stores.

A KeywordRule matches lower-cased text when any of its `keywords` is a
substring, or when every group in `all_of` has at least one substring
match. The classifier in review_signals scans these tables; it holds no
keyword of its own.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class KeywordRule:
    """Named keyword set with optional conjunctive groups."""
    name: str
    keywords: Tuple[str, ...] = ()
    all_of: Tuple[Tuple[str, ...], ...] = ()

    def matches(self, text: str) -> bool:
        """True if `text` (already lower-cased) triggers the rule."""
        if any(kw in text for kw in self.keywords):
            return True
        if self.all_of:
            return all(any(kw in text for kw in group) for group in self.all_of)
        return False

    def first_word_index(self, words: Sequence[str]) -> Optional[int]:
        """Index of the first word containing one of the keywords."""
        for index, word in enumerate(words):
            if any(kw in word for kw in self.keywords):
                return index
        return None


def first_match(rules: Sequence[KeywordRule], text: str) -> Optional[KeywordRule]:
    """First rule (in table order) matching `text`."""
    for rule in rules:
        if rule.matches(text):
            return rule
    return None


# =============================================================================
# COMMENT CATEGORIES: evaluated in order, first match wins
# =============================================================================
# Keyword sets overlap ("atendimento ... preço" is Service), so order matters.

OTHER_CATEGORY = "Outros"

CATEGORY_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule("Atendimento", (
        "atendimento", "funcionário", "vendedor", "vendedora", "equipe",
        "pessoal", "atendente", "atenderam", "ajudaram", "cordial",
        "prestativo", "educado",
    )),
    KeywordRule(
        "Ambiente",
        (
            "ambiente", "limpeza", "organização", "organizado", "estrutura",
            "local", "espaço",
        ),
        all_of=(("loja",), ("limpa", "organizada", "arrumada")),
    ),
    KeywordRule("Tempo de Espera", (
        "espera", "esperar", "fila", "demora", "rápido", "rapidez",
        "lento", "demorou", "demorado",
    )),
    KeywordRule("Produtos", (
        "produto", "qualidade", "variedade", "estoque", "marca", "tamanho",
        "tamanhos", "disponível", "disponibilidade", "opções", "opcao",
    )),
    KeywordRule("Preços", (
        "preço", "preco", "valor", "caro", "barato", "promoção", "promocao",
        "desconto", "competitivo", "econômico", "economico",
    )),
)

CATEGORIES: Tuple[str, ...] = tuple(r.name for r in CATEGORY_RULES) + (OTHER_CATEGORY,)


# =============================================================================
# RECURRING PERCEPTIONS
# =============================================================================
# Positive themes scan comments rated >= 4, negative themes comments rated <= 3.

POSITIVE_THEMES: Tuple[KeywordRule, ...] = (
    KeywordRule("Variedade de Marcas", (
        "nike", "adidas", "puma", "under armour", "variedade", "marcas",
        "seleção", "opções", "produtos", "departamentos",
    )),
    KeywordRule("Qualidade dos Produtos", (
        "qualidade", "bom produto", "durabilidade", "material", "fabricação",
        "resistente", "excelente qualidade", "alta qualidade",
    )),
    KeywordRule("Estrutura/Organização", (
        "organizado", "limpo", "estrutura", "moderno", "amplo", "espaçoso",
        "bem organizado", "arrumado", "ambiente",
    )),
    KeywordRule("Atendimento Prestativo", (
        "atendimento", "atendente", "vendedor", "prestativo", "educado",
        "simpático", "atencioso", "ajudou", "atendeu bem", "caloroso", "gentil",
    )),
    KeywordRule("Facilidade de Trocas", (
        "troca", "trocas", "devolução", "política", "fácil trocar",
        "aceita troca", "trocou", "online",
    )),
)

OPERATIONAL_ERRORS_THEME = "Erros Operacionais"

NEGATIVE_THEMES: Tuple[KeywordRule, ...] = (
    KeywordRule("Preços Altos", (
        "caro", "preço alto", "muito caro", "caríssimo", "caro demais",
        "preço", "barato", "metade do preço", "mais barato", "online",
    )),
    KeywordRule("Atendimento Lento/Desinteressado", (
        "atendimento ruim", "atendimento péssimo", "lento", "desinteressado",
        "má vontade", "ignorou", "não atendeu", "deixou esperando",
        "conversando", "funcionários", "vendedores", "deplorável", "terrível",
    )),
    KeywordRule(OPERATIONAL_ERRORS_THEME, (
        "erro", "tamanho errado", "cor errada", "produto errado",
        "não entregou", "não entregue", "falta", "sem estoque", "produto não",
        "nunca entregou", "protocolo",
    )),
)

# Operational errors that are reported verbatim as severe cases
SEVERE_CASE_RULE = KeywordRule("delivery failure", (
    "não entregou", "nunca entregou", "não entregue", "protocolo",
))


# =============================================================================
# DEEP STORE ANALYSIS ASPECTS
# =============================================================================

STRUCTURE_RULE = KeywordRule("structure", (
    "organizado", "limpo", "estrutura", "moderno", "amplo", "espaçoso",
    "bem organizado",
))

SERVICE_NEGATIVE_RULE = KeywordRule("service negative", (
    "atendimento ruim", "atendimento péssimo", "lento", "desinteressado",
    "má vontade", "ignorou", "não atendeu", "deplorável", "terrível",
    "conversando", "funcionários", "vendedores",
))

SERVICE_POSITIVE_RULE = KeywordRule("service positive", (
    "atendimento bom", "atendimento excelente", "prestativo", "educado",
    "simpático", "atencioso", "caloroso", "gentil",
))

POLICY_RULE = KeywordRule("policy", (
    "política", "troca", "trocas", "devolução", "políticas",
))

POLICY_NEGATIVE_RULE = KeywordRule("policy negative", (
    "absurda", "restritiva", "problemática", "ruim",
))

OPERATIONS_RULE = KeywordRule("operations", (
    "erro", "tamanho errado", "cor errada", "produto errado", "não entregou",
    "não entregue", "falta", "sem estoque", "produto não", "nunca entregou",
))


# =============================================================================
# TIERED STORE NOTES
# =============================================================================
# Highlights scan a store's comments rated >= 4, problems those rated <= 3.
# Every matching rule contributes its name.

HIGHLIGHT_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule("Outstanding service", all_of=(("atendimento",), ("bom", "excelente"))),
    KeywordRule("Good product variety", ("variedade", "opções")),
    KeywordRule("Competitive prices", all_of=(("preço",), ("bom", "competitivo"))),
    KeywordRule("Organized environment", ("organizado", "limpo")),
    KeywordRule("Easy exchanges", all_of=(("troca",), ("fácil", "aceita"))),
    KeywordRule("Good stock", all_of=(("estoque",), ("bom",))),
)

PROBLEM_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule("Problematic service", all_of=(("atendimento",), ("ruim", "péssimo"))),
    KeywordRule("High prices", all_of=(("preço",), ("caro", "alto"))),
    KeywordRule("Stock-outs", all_of=(("estoque",), ("falta", "sem"))),
    KeywordRule("Operational errors", ("erro", "não entregou")),
    KeywordRule("Restrictive policies", all_of=(("política",), ("ruim", "restritiva"))),
)
