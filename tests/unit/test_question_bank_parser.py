from __future__ import annotations

from app.services.question_bank import MIN_BANK_QUESTIONS, parse_question_bank

TWO_ANSWERED = """Week 3 Quiz

1. What is the capital of France?
A) Berlin
B) Paris
C) Madrid
D) Rome
Answer: B

Q2: Which gas do plants absorb?
a. Oxygen
b. Nitrogen
c. Carbon dioxide
d. Helium
Ans - c
"""

ONE_UNANSWERED = """Question 1: Largest planet?
A) Earth
B) Jupiter
C) Mars
D) Venus
Correct: B

Question 2: Smallest prime?
A) 1
B) 2
C) 3
D) 5
"""


def test_parses_answered_blocks_into_a_bank() -> None:
  result = parse_question_bank(TWO_ANSWERED)

  assert result.is_question_bank is True
  assert result.missing_answers == 0
  assert [question.text for question in result.questions] == ["What is the capital of France?", "Which gas do plants absorb?"]
  assert [question.correct_answer for question in result.questions] == ["B", "C"]
  assert result.questions[1].options == {"A": "Oxygen", "B": "Nitrogen", "C": "Carbon dioxide", "D": "Helium"}


def test_block_without_answer_is_counted_not_dropped() -> None:
  result = parse_question_bank(ONE_UNANSWERED)

  assert result.is_question_bank is True
  assert len(result.questions) == 2
  assert result.missing_answers == 1
  assert result.questions[1].correct_answer is None
  assert len(result.answered) == 1


def test_answer_marker_inside_option_line_is_not_part_of_option() -> None:
  text = "1) Two plus two?\nA) 3\nB) 4\nC) 5\nD) 6   Answer: B\n2) Three plus three?\nA) 6\nB) 7\nC) 8\nD) 9\nAnswer: A"
  result = parse_question_bank(text)

  assert result.questions[0].options["D"] == "6"
  assert result.questions[0].correct_answer == "B"


def test_multi_line_stems_are_joined() -> None:
  text = "1. Consider the list below\nand pick the sorted one.\nA) [2, 1]\nB) [1, 2]\nC) [3, 1]\nD) [2, 3, 1]\nAnswer: B\n2. Pick the even number\nA) 1\nB) 3\nC) 4\nD) 5\nAnswer: C"
  result = parse_question_bank(text)

  assert result.questions[0].text == "Consider the list below and pick the sorted one."


def test_blocks_missing_an_option_are_discarded() -> None:
  text = "1. Incomplete?\nA) yes\nB) no\nC) maybe\nAnswer: A\n2. Complete?\nA) a\nB) b\nC) c\nD) d\nAnswer: D"
  result = parse_question_bank(text)

  assert len(result.questions) == 1
  assert result.is_question_bank is False
  assert MIN_BANK_QUESTIONS == 2


def test_plain_prose_is_not_a_bank() -> None:
  result = parse_question_bank("Sorting algorithms arrange items in order.\nMerge sort splits the input in halves.")

  assert result.is_question_bank is False
  assert result.questions == []
  assert result.missing_answers == 0


def test_never_raises_on_empty_or_odd_input() -> None:
  for raw in (None, "", "\r\n\r\n", "1.", "A) orphan option", "Answer: Z"):
    result = parse_question_bank(raw)
    assert result.is_question_bank is False


def test_answer_wording_in_stem_is_not_an_answer() -> None:
  text = "1. In which case is the answer a negative number?\nA) 3 - 5\nB) 5 - 3\nC) 2 + 2\nD) 0 * 1\n2. Is the correct a-b pairing shown?\nA) yes\nB) no\nC) partly\nD) unknown"
  result = parse_question_bank(text)

  assert result.is_question_bank is True
  assert result.missing_answers == 2
  assert [question.correct_answer for question in result.questions] == [None, None]
  assert [question.text for question in result.questions] == ["In which case is the answer a negative number?", "Is the correct a-b pairing shown?"]


def test_answer_line_variants() -> None:
  text = "1. First?\nA) a\nB) b\nC) c\nD) d\nCorrect answer is: (d)\n2. Second?\nA) a\nB) b\nC) c\nD) d\nAnswer - A."
  result = parse_question_bank(text)

  assert [question.correct_answer for question in result.questions] == ["D", "A"]
  assert result.missing_answers == 0
