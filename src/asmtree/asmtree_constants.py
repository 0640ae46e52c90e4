"""
Lexical tables shared by the asmtree lexer and parser.

Contents:
    token_hashmap: single-character punctuation mapped to canonical token types.
    REGISTERS: lowercase names of every register the lexer recognises.
    SIZE_SPECIFIERS: first word of a two-word size specifier mapped to its token type.
    SIZE_BITS: size-specifier token type mapped to the operand bit width.
    SIZE_NAMES: operand bit width mapped back to its size keyword.
    DIRECTIVE_KEYWORDS: data/equate keywords that allow a colon-less label in front.
    EQUATE_DIRECTIVES: uppercase mnemonics whose body is a single expression.
    ANCHOR_MNEMONIC: placeholder mnemonic for labels with no instruction of their own.

All tables are read-only and shared by every Lexer/Parser instance.
"""

token_hashmap: dict[str, str] = {
    ",": "COMMA",
    ":": "COLON",
    "[": "LBRACK",
    "]": "RBRACK",
    "(": "LPAREN",
    ")": "RPAREN",
    "+": "PLUS",
    "-": "SUB",
    "*": "MULT",
    "/": "DIV",
    "%": "MOD",
    "$": "DOLLAR",
}

# fmt: off
REGISTERS: frozenset[str] = frozenset(
    {
        # 64-bit
        "rax", "rbx", "rcx", "rdx", "rsi", "rdi", "rbp", "rsp",
        "r8", "r9", "r10", "r11", "r12", "r13", "r14", "r15",
        "rip",
        # 32-bit
        "eax", "ebx", "ecx", "edx", "esi", "edi", "ebp", "esp",
        "r8d", "r9d", "r10d", "r11d", "r12d", "r13d", "r14d", "r15d",
        # 16-bit
        "ax", "bx", "cx", "dx", "si", "di", "bp", "sp",
        "r8w", "r9w", "r10w", "r11w", "r12w", "r13w", "r14w", "r15w",
        # 8-bit
        "al", "bl", "cl", "dl", "sil", "dil", "bpl", "spl",
        "ah", "bh", "ch", "dh",
        "r8b", "r9b", "r10b", "r11b", "r12b", "r13b", "r14b", "r15b",
        # segment
        "cs", "ds", "es", "fs", "gs", "ss",
    }
)
# fmt: on

SIZE_SPECIFIERS: dict[str, str] = {
    "byte": "BYTE_PTR",
    "word": "WORD_PTR",
    "dword": "DWORD_PTR",
    "qword": "QWORD_PTR",
}

SIZE_BITS: dict[str, int] = {
    "BYTE_PTR": 8,
    "WORD_PTR": 16,
    "DWORD_PTR": 32,
    "QWORD_PTR": 64,
}

SIZE_NAMES: dict[int, str] = {SIZE_BITS[tok]: word for word, tok in SIZE_SPECIFIERS.items()}

DIRECTIVE_KEYWORDS: frozenset[str] = frozenset(
    {"db", "dw", "dd", "dq", "eq", "eqo", "equ"}
)

EQUATE_DIRECTIVES: frozenset[str] = frozenset({"EQU", "EQO", "EQ"})

# Starts with '.', which the lexer never accepts in an identifier.
ANCHOR_MNEMONIC = ".ANCHOR"

LINE_END_TOKENS: frozenset[str] = frozenset({"NEWLINE", "COMMENT", "EOF"})

NUMERIC_TOKENS: frozenset[str] = frozenset({"NUMBER", "HEX_NUMBER"})

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1
UINT64_MASK = (1 << 64) - 1

__all__ = [
    "ANCHOR_MNEMONIC",
    "DIRECTIVE_KEYWORDS",
    "EQUATE_DIRECTIVES",
    "INT64_MAX",
    "INT64_MIN",
    "LINE_END_TOKENS",
    "NUMERIC_TOKENS",
    "REGISTERS",
    "SIZE_BITS",
    "SIZE_NAMES",
    "SIZE_SPECIFIERS",
    "UINT64_MASK",
    "token_hashmap",
]
