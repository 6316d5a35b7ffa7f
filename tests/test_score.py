from vaultsense.score import STRENGTH_LABELS, analyze_strength, label_for


def test_password_scores_very_weak():
    result = analyze_strength("password")
    assert result.score == 0
    assert result.label == "Very Weak"
    assert result.suggestions == [
        "Include uppercase letters",
        "Include numbers",
        "Include special characters",
    ]

def test_labels_follow_score():
    assert analyze_strength("xkz").label == "Weak"           # 1
    assert analyze_strength("xkzmpqrv").label == "Fair"      # 2
    assert analyze_strength("xkzmpqrv7").label == "Good"     # 3
    assert analyze_strength("Xk9mPq2v").label == "Strong"    # 4

def test_short_password_suggests_length_first():
    result = analyze_strength("xkz")
    assert result.suggestions[0] == "Use at least 8 characters"

def test_symbols_score_twice():
    # 1 (length) + 4 (classes) + 1 (symbol bonus) = 6, clamped to 5
    assert analyze_strength("Xk9#mPq2").score == 5

def test_top_score_falls_outside_label_table():
    assert len(STRENGTH_LABELS) == 5
    assert analyze_strength("Xk9#mPq2$vLw7!nR").score == 5
    assert label_for(5) == "Very Weak"
    assert label_for(-1) == "Very Weak"

def test_repeat_penalty():
    assert analyze_strength("xkzzzmpq7").score == 2

def test_never_negative():
    assert analyze_strength("abc").score == 0
    assert analyze_strength("").score == 0

def test_deterministic():
    assert analyze_strength("Tr0ub4dor&9!") == analyze_strength("Tr0ub4dor&9!")
