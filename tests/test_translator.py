import pytest
from flatvm.core.instruction import Instruction
from flatvm.core.opcodes import Opcode
from flatvm.errors import TranslationError
from flatvm.reader import SourceLine, tokenize
from flatvm.translator import (
    find_labels,
    find_procedures,
    parse_instruction,
    translate,
)


def lines_of(*rows):
    """Helper to build bare token lines from strings."""
    return [row.split() for row in rows]


def test_tokenize_drops_blank_and_comment_lines():
    """Blank and ``--`` lines never get an address."""
    text = "Push 1\n\n   \n-- a comment\nPush 2\n  --   indented comment\nAdd\n"
    lines = tokenize(text)
    assert [l.tokens for l in lines] == [["Push", "1"], ["Push", "2"], ["Add"]]
    assert [l.line_no for l in lines] == [1, 5, 7]


def test_tokenize_splits_on_any_whitespace():
    lines = tokenize("\tPush\t  -3   \r\n")
    assert lines == [SourceLine(1, ["Push", "-3"])]


def test_find_labels_records_line_positions():
    lines = lines_of("Push 1", "label top", "Decr", "label bottom")
    assert find_labels(lines) == {"top": 1, "bottom": 3}


def test_find_labels_rejects_duplicates():
    lines = lines_of("label a", "Push 1", "label a")
    with pytest.raises(TranslationError, match="Duplicate label"):
        find_labels(lines)


def test_find_procedures_records_start_and_exit():
    lines = lines_of(
        "Push 1",      # 0
        "Proc f",      # 1
        "GetArg 0",    # 2
        "Ret",         # 3
        "End",         # 4
        "Proc g",      # 5
        "Ret",         # 6
        "End",         # 7
        "Print",       # 8
    )
    assert find_procedures(lines) == {"f": (1, 5), "g": (5, 8)}


def test_find_procedures_unterminated_block_fails():
    lines = lines_of("Proc f", "Push 1", "Ret")
    with pytest.raises(TranslationError, match="Unterminated procedure 'f'"):
        find_procedures(lines)


def test_find_procedures_does_not_nest():
    """A Proc inside a body is skipped over, so it never gets an entry."""
    lines = lines_of("Proc outer", "Proc inner", "End", "End")
    assert find_procedures(lines) == {"outer": (0, 3)}
    with pytest.raises(TranslationError, match="Undefined procedure 'inner'"):
        translate(lines)


def test_proc_compiles_to_guard_jump_and_call_skips_it():
    lines = lines_of("Push 5", "Call f", "Print", "Proc f", "Ret", "End")
    program = translate(lines)
    assert program[1] == Instruction(Opcode.CALL, 4)
    assert program[3] == Instruction(Opcode.JUMP, 6)
    assert program[5] == Instruction(Opcode.NOOP)


def test_every_line_occupies_one_slot():
    lines = lines_of("label start", "Push 0", "JE start", "Proc p", "End", "Call p")
    program = translate(lines)
    assert len(program) == len(lines)
    assert [i.opcode for i in program.instructions] == [
        Opcode.NOOP,
        Opcode.PUSH,
        Opcode.JE,
        Opcode.JUMP,
        Opcode.NOOP,
        Opcode.CALL,
    ]
    assert program[2].operand == 0
    assert program[5].operand == 4


@pytest.mark.parametrize(
    "mnemonic,opcode",
    [
        ("Jump", Opcode.JUMP),
        ("JE", Opcode.JE),
        ("JNE", Opcode.JNE),
        ("JGE", Opcode.JGE),
        ("JLE", Opcode.JLE),
        ("JGT", Opcode.JGT),
        ("JLT", Opcode.JLT),
    ],
)
def test_jumps_resolve_against_labels(mnemonic, opcode):
    instr = parse_instruction([mnemonic, "here"], {"here": 7}, {})
    assert instr == Instruction(opcode, 7)


@pytest.mark.parametrize(
    "tokens,expected",
    [
        (["Push", "-12"], Instruction(Opcode.PUSH, -12)),
        (["Push", "+4"], Instruction(Opcode.PUSH, 4)),
        (["Get", "3"], Instruction(Opcode.GET, 3)),
        (["Set", "0"], Instruction(Opcode.SET, 0)),
        (["GetArg", "1"], Instruction(Opcode.GETARG, 1)),
        (["SetArg", "2"], Instruction(Opcode.SETARG, 2)),
        (["CollapseRet", "1"], Instruction(Opcode.COLLAPSERET, 1)),
        (["PrintStack"], Instruction(Opcode.PRINTSTACK)),
    ],
)
def test_numeric_operands(tokens, expected):
    assert parse_instruction(tokens, {}, {}) == expected


@pytest.mark.parametrize(
    "tokens",
    [
        ["Push", "abc"],
        ["Push", "1.5"],
        ["Push", "1_000"],
        ["Get", "-1"],
        ["CollapseRet", "x"],
    ],
)
def test_bad_numeric_operand_fails(tokens):
    with pytest.raises(TranslationError, match="Invalid"):
        parse_instruction(tokens, {}, {})


@pytest.mark.parametrize(
    "tokens",
    [
        ["Frobnicate"],
        ["push", "1"],
        ["Push"],
        ["Push", "1", "2"],
        ["Add", "1"],
        ["label"],
        ["End", "now"],
    ],
)
def test_unrecognized_forms_fail(tokens):
    with pytest.raises(TranslationError):
        parse_instruction(tokens, {}, {})


def test_undefined_label_fails_before_anything_runs():
    with pytest.raises(TranslationError, match="Undefined label 'nowhere'"):
        translate(lines_of("Push 1", "Jump nowhere"))


def test_undefined_procedure_fails():
    with pytest.raises(TranslationError, match="Undefined procedure 'f'"):
        translate(lines_of("Call f"))


def test_error_reports_source_line():
    lines = tokenize("Push 1\n\n-- skip\nBogus 2\n")
    with pytest.raises(TranslationError) as exc_info:
        translate(lines)
    assert exc_info.value.line_no == 4
    assert exc_info.value.tokens == ["Bogus", "2"]
    assert "line 4" in str(exc_info.value)


def test_program_keeps_source_line_numbers():
    program = translate(tokenize("-- header\nPush 1\n\nPrint\n"))
    assert program.source_lines == (2, 4)
    assert program.line_for(1) == 4
    assert program.line_for(2) is None


def test_instruction_listing_text():
    assert str(Instruction(Opcode.PUSH, -3)) == "Push -3"
    assert str(Instruction(Opcode.NOOP)) == "Noop"
    assert str(Instruction(Opcode.COLLAPSERET, 1)) == "CollapseRet 1"
