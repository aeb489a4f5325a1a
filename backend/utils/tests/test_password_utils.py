from backend.utils.password_utils import PasswordUtils


def test_strong_password():
    assert PasswordUtils.validate_password("Senha@123") == (True, [])
    assert PasswordUtils.password_strength("Senha@123") == "Senha forte"


def test_empty_password_has_no_strength_text():
    assert PasswordUtils.password_strength("") == ""


def test_each_rule_reports_its_message():
    valid, errors = PasswordUtils.validate_password("abc")
    assert not valid
    assert errors == [
        "A senha deve ter pelo menos 8 caracteres",
        "A senha deve conter pelo menos 1 letra maiúscula",
        "A senha deve conter pelo menos 1 número",
        "A senha deve conter pelo menos 1 símbolo",
    ]


def test_strength_joins_errors():
    assert PasswordUtils.password_strength("SENHAFORTE1!") == "A senha deve conter pelo menos 1 letra minúscula"
    assert PasswordUtils.password_strength("Senhaforte1") == "A senha deve conter pelo menos 1 símbolo"
