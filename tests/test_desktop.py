from desktop_agent.desktop import start_process_command


def test_start_process_command_quotes_plain_executable():
    assert start_process_command("notepad.exe") == "Start-Process -FilePath 'notepad.exe'"


def test_start_process_command_keeps_spaces_inside_quotes():
    command = start_process_command(r"C:\Program Files\App\app.exe")
    assert command == r"Start-Process -FilePath 'C:\Program Files\App\app.exe'"


def test_start_process_command_cannot_chain_commands():
    command = start_process_command("calc.exe'; Remove-Item C:\\x; '")

    # 引号成对转义后整个值仍是一个字符串字面量
    assert command == "Start-Process -FilePath 'calc.exe''; Remove-Item C:\\x; '''"
    literal = command[len("Start-Process -FilePath "):]
    assert literal.startswith("'") and literal.endswith("'")
    assert "'" not in literal[1:-1].replace("''", "")
