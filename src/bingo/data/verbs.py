# Built-in verb catalog for the bingo board.
# 20 regular and 30 irregular verbs, enough to fill every difficulty level.

from typing import List

from ..models import Verb


def _verb(present: str, past: str, regular: bool) -> Verb:
    return Verb(present=present, past=past, is_regular=regular)


DEFAULT_VERBS: List[Verb] = [
    # Regular
    _verb("walk", "walked", True),
    _verb("jump", "jumped", True),
    _verb("play", "played", True),
    _verb("help", "helped", True),
    _verb("watch", "watched", True),
    _verb("clean", "cleaned", True),
    _verb("cook", "cooked", True),
    _verb("paint", "painted", True),
    _verb("talk", "talked", True),
    _verb("listen", "listened", True),
    _verb("open", "opened", True),
    _verb("close", "closed", True),
    _verb("dance", "danced", True),
    _verb("laugh", "laughed", True),
    _verb("smile", "smiled", True),
    _verb("wash", "washed", True),
    _verb("push", "pushed", True),
    _verb("pull", "pulled", True),
    _verb("climb", "climbed", True),
    _verb("start", "started", True),

    # Irregular
    _verb("go", "went", False),
    _verb("see", "saw", False),
    _verb("run", "ran", False),
    _verb("eat", "ate", False),
    _verb("drink", "drank", False),
    _verb("come", "came", False),
    _verb("make", "made", False),
    _verb("take", "took", False),
    _verb("give", "gave", False),
    _verb("get", "got", False),
    _verb("write", "wrote", False),
    _verb("read", "read", False),
    _verb("have", "had", False),
    _verb("do", "did", False),
    _verb("say", "said", False),
    _verb("sing", "sang", False),
    _verb("swim", "swam", False),
    _verb("fly", "flew", False),
    _verb("buy", "bought", False),
    _verb("find", "found", False),
    _verb("sleep", "slept", False),
    _verb("stand", "stood", False),
    _verb("sit", "sat", False),
    _verb("draw", "drew", False),
    _verb("cut", "cut", False),
    _verb("hold", "held", False),
    _verb("catch", "caught", False),
    _verb("throw", "threw", False),
    _verb("hide", "hid", False),
    _verb("ride", "rode", False),
]
