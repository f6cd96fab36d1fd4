from sideloader.models import ResolvedSettings, WrapperOption
from sideloader.wrappers import setup_wrappers, splice_wrappers


def test_no_tools_leaves_argv_untouched():
    wrappers = setup_wrappers(ResolvedSettings())
    assert wrappers == []
    binary, tail = splice_wrappers(wrappers, "/g/game.x86_64", ["-windowed", "-fps"])
    assert [binary, *tail] == ["/g/game.x86_64", "-windowed", "-fps"]


def test_chain_order_and_gaps():
    wrappers = setup_wrappers(
        ResolvedSettings(),
        overlay=["mangohud", "--dlsym"],
        mode_switch=None,
        container=["gamescope", "-f", "--"],
        runtime_prefix=["/rt/_v2-entry-point", "--verb=waitforexitandrun", "--"],
    )
    assert wrappers == [
        "mangohud", "--dlsym",
        "gamescope", "-f", "--",
        "/rt/_v2-entry-point", "--verb=waitforexitandrun", "--",
    ]


def test_user_wrappers_come_first():
    settings = ResolvedSettings(wrapper_options=[WrapperOption(exe="strace", args="-f -o '/tmp/a b.txt'")])
    wrappers = setup_wrappers(settings, mode_switch=["gamemoderun"])
    assert wrappers == ["strace", "-f", "-o", "/tmp/a b.txt", "gamemoderun"]


def test_first_wrapper_is_spawned_and_executable_closes_the_chain():
    wrappers = ["mangohud", "--dlsym", "gamemoderun"]
    binary, tail = splice_wrappers(wrappers, "/g/game", [])
    assert binary == "mangohud"
    assert tail == ["--dlsym", "gamemoderun", "/g/game"]
    assert tail[-1] == "/g/game"

    binary, tail = splice_wrappers(wrappers, "/g/game", ["-a", "-b"])
    assert [binary, *tail] == ["mangohud", "--dlsym", "gamemoderun", "/g/game", "-a", "-b"]
