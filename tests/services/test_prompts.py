from dr_preinstall.services.prompts import PromptService


def test_parse_choice_returns_zero_based_index():
    assert PromptService.parse_choice("2", 3) == 1


def test_parse_choice_rejects_out_of_range_and_garbage():
    assert PromptService.parse_choice("0", 3) is None
    assert PromptService.parse_choice("4", 3) is None
    assert PromptService.parse_choice("docker", 3) is None


def test_parse_yes_no_accepts_prefixes():
    assert PromptService.parse_yes_no("Yes") is True
    assert PromptService.parse_yes_no("n") is False
    assert PromptService.parse_yes_no("maybe") is None
