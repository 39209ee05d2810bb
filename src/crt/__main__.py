"""
Entry point: `python -m crt` or `crt-task` script.
Wires all modules together.
"""
from __future__ import annotations


def run() -> None:
    # Disable pyglet event checking in background threads (prevents macOS crash)
    from psychopy import core
    core.checkPygletDuringWait = False

    from datetime import datetime

    from psychopy import event as psy_event, logging
    from rich.console import Console
    from rich.live import Live
    from rich.table import Table
    import rich.box

    from crt import config, display, machine, recorder, session, storage, submit
    from crt.controller import SessionController, label_for_key
    from crt.history import render_session
    from crt.timers import PsychopyClock, TimerQueue

    # ── INITIALISE SESSION ───────────────────────────────────────────────────
    session_info = session.show_dialog()
    session_time = datetime.now()
    participant = storage.participant_id(session_info.data_dir)

    win_res, win = session.setup_screen()

    measured_fps = win.getActualFrameRate()
    frame_rate = measured_fps if (measured_fps is not None and measured_fps < 200) else 60.0

    # ── LOGGING ──────────────────────────────────────────────────────────────
    run_dir = session.make_run_dir(session_info.data_dir, participant, session_time)
    logging.LogFile(str(run_dir / "experiment.log"), level=logging.EXP)
    logging.console.setLevel(logging.WARNING)  # rich handles terminal output

    # ── RICH CONSOLE ─────────────────────────────────────────────────────────
    rcon = Console(stderr=True)
    rcon.print(
        f"[bold]Session:[/bold] participant=[cyan]{participant}[/cyan]  "
        f"submit=[cyan]{session_info.submit}[/cyan]  url=[cyan]{session_info.submit_url}[/cyan]"
    )
    rcon.print(f"[bold]Frame rate:[/bold] {frame_rate:.1f} Hz")
    logging.exp(f"Session: participant={participant}  submit={session_info.submit}")
    logging.exp(f"Frame rate: {frame_rate:.1f} Hz")

    # ── OUTPUT FILES ─────────────────────────────────────────────────────────
    trial_writer = recorder.TrialCsvWriter(run_dir / "trials.csv")
    recorder.write_manifest(
        run_dir=run_dir,
        participant_id=participant,
        session_time=session_time,
        frame_rate=frame_rate,
    )
    session_log = storage.SessionLog(session_info.data_dir)
    client = submit.AggregateClient(session_info.submit_url)

    # ── BUILD STIMULI ────────────────────────────────────────────────────────
    stimuli_obj = display.build_stimuli(win)
    win.mouseVisible = False

    table = Table(box=rich.box.SIMPLE_HEAD)
    table.add_column("Section")
    table.add_column("#", justify="right")
    table.add_column("Stimulus")
    table.add_column("Answer")
    table.add_column("Result")
    table.add_column("RT", justify="right")

    def on_trial(section_id: str, rec: recorder.TrialRecord) -> None:
        trial_writer.append(section_id, rec)
        stim = "grid" if rec.stimulus.startswith("grid:") else rec.stimulus
        table.add_row(
            section_id,
            str(rec.index + 1),
            stim,
            rec.given_answer,
            "[green]OK[/green]" if rec.is_correct else "[red]error[/red]",
            f"{rec.reaction_time_ms:.0f} ms",
        )
        live.refresh()

    def on_section(result: recorder.SectionResult) -> None:
        s = result.summary
        rcon.print(
            f"[bold]{result.section_id}[/bold] sealed: n={s.count}  "
            f"acc=[cyan]{s.accuracy * 100:.0f}%[/cyan]  mean RT=[cyan]{s.mean_rt_ms:.0f} ms[/cyan]"
        )

    def on_alert() -> None:
        rcon.print("[bold yellow]Stroop time is up[/bold yellow]")

    def on_complete(completed: recorder.TestSession) -> None:
        if session_info.submit:
            payload = submit.build_payload(completed, participant, submit.default_meta(win_res))
            client.submit_in_background(payload)

    clock = PsychopyClock()
    timers = TimerQueue(clock)
    controller = SessionController(
        clock=clock,
        timers=timers,
        session_log=session_log,
        on_trial=on_trial,
        on_section=on_section,
        on_alert=on_alert,
        on_complete=on_complete,
    )

    key_list = [
        config.KEY_CONTINUE, config.KEY_QUIT, *config.KEYS_CRT.values(), *config.KEYS_STROOP,
    ]

    # ── FRAME LOOP ───────────────────────────────────────────────────────────
    aborted = False
    psy_event.clearEvents()
    controller.start()
    # auto_refresh=False prevents a background timer thread during trials
    with Live(table, console=rcon, auto_refresh=False) as live:
        while controller.phase != machine.Done.phase:
            timers.poll()

            if controller.phase == machine.Intro.phase and not session_info.show_instructions:
                controller.acknowledge()

            for key in psy_event.getKeys(keyList=key_list):
                if key == config.KEY_QUIT:
                    aborted = True
                    break
                if controller.phase == machine.Intro.phase:
                    if key == config.KEY_CONTINUE:
                        controller.acknowledge()
                    continue
                label = label_for_key(key, controller.labels)
                if label is not None:
                    controller.answer(label)
            if aborted:
                break

            message = controller.message
            stim = controller.current_stimulus
            if stim is not None:
                display.draw_stimulus(stimuli_obj, stim)
                display.draw_labels(stimuli_obj, controller.labels)
                display.draw_feedback(stimuli_obj, controller.feedback)
                if controller.remaining_s is not None:
                    display.draw_countdown(stimuli_obj, controller.remaining_s)
            elif message is not None:
                display.draw_message(
                    stimuli_obj, message, footer=controller.phase == machine.Intro.phase,
                )
            win.flip()

    trial_writer.close()

    if aborted:
        rcon.print("[bold red]Session aborted[/bold red]; nothing was saved to the session log")
        logging.exp("Session aborted by participant")
    elif controller.session is not None:
        render_session(rcon, controller.session)

    # ── END SCREEN ───────────────────────────────────────────────────────────
    if not aborted:
        stimuli_obj.end.draw()
        win.flip()
        psy_event.waitKeys(keyList=[config.KEY_CONTINUE, config.KEY_QUIT])

    # ── CLEANUP ──────────────────────────────────────────────────────────────
    logging.flush()
    win.close()
    core.quit()


if __name__ == "__main__":
    run()
