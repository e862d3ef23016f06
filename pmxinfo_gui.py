import os
import tkinter as tk
from tkinter import filedialog, messagebox
from tkinterdnd2 import DND_FILES, TkinterDnD
import json

VERSION = "1.0.0"
SETTINGS_FILE = "pmxinfo_settings.json"

def save_settings(settings: dict):
    """Save settings to JSON file."""
    try:
        with open(SETTINGS_FILE, "w", encoding="utf-8") as f:
            json.dump(settings, f, ensure_ascii=False, indent=4)
    except OSError as e:
        print(f"Failed to save settings: {e}")


def load_settings() -> dict:
    """Load settings from JSON file if it exists."""
    if os.path.exists(SETTINGS_FILE):
        try:
            with open(SETTINGS_FILE, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            print(f"Failed to load settings: {e}")
    return {}


import pmxinfo
def run_inspect(path: str, output: tk.Text, **kwargs):
    """
    Decodes a PMX file and shows the report in the output box.
    """

    if not path:
        messagebox.showerror("Error", "PMX file must be specified.")
        return

    if not os.path.isfile(path):
        messagebox.showerror("Error", "PMX file does not exist.")
        return

    # Sections checked in the list options
    lists = [section for section in pmxinfo.LIST_SECTIONS if kwargs.get(f"list_{section.lower()}", False)]

    ret, msg = pmxinfo.inspect_pmx_file(path, lists=lists)

    output.config(state="normal")
    output.delete("1.0", tk.END)
    if not ret:
        messagebox.showerror("Error", f"PMX inspection failed: {msg}")
    else:
        output.insert(tk.END, msg)
    output.config(state="disabled")


# ToolTip class for displaying tooltips on widgets
class ToolTip:
    def __init__(self, widget, text):
        self.widget = widget
        self.text = text
        self.tip_window = None
        self.widget.bind("<Enter>", self.show_tip)
        self.widget.bind("<Leave>", self.hide_tip)

    def show_tip(self, event=None):
        if self.tip_window or not self.text:
            return
        x = self.widget.winfo_rootx() + 20
        y = self.widget.winfo_rooty() + self.widget.winfo_height() + 5
        self.tip_window = tw = tk.Toplevel(self.widget)
        tw.wm_overrideredirect(True)  # Remove window decorations
        tw.wm_geometry(f"+{x}+{y}")
        label = tk.Label(
                tw, text=self.text, justify="left",
                background="#ffffe0", relief="solid", borderwidth=1,
                font=("tahoma", "9", "normal"))
        label.pack(ipadx=5, ipady=2)

    def hide_tip(self, event=None):
        if self.tip_window:
            self.tip_window.destroy()
            self.tip_window = None


# Function to update the button state based on input validity
def update_button_state(path_var, tb_path, run_button):
    path_valid = path_var.get().lower().endswith(".pmx") and os.path.isfile(path_var.get())

    tb_path.config(bg="white" if path_valid else "#ffe0e0")

    if path_valid:
        run_button.config(state="normal", bg="green", fg="white")
    else:
        run_button.config(state="disabled", bg="SystemButtonFace", fg="black")


# Main function to create the GUI
def main():
    # Create the main window
    root = TkinterDnD.Tk()
    root.title(f"PMX Info Tool {VERSION}")

    settings = load_settings()

    path_var = tk.StringVar(value=settings.get("input_pmx", ""))

    # List options, one per listable section
    list_vars = {
        section: tk.BooleanVar(value=settings.get(f"list_{section.lower()}", section in ("MATERIAL", "BONE")))
        for section in pmxinfo.LIST_SECTIONS
    }

    # Main frame for input fields
    frame = tk.Frame(root, padx=16, pady=16)
    frame.pack(fill="both", expand=True)

    run_button = tk.Button(frame)

    update_cb = lambda: update_button_state(path_var, tb_path, run_button)

    def browse_file(var):
        path = filedialog.askopenfilename(filetypes=[("PMX files", "*.pmx")])
        if path:
            var.set(path)

    label = tk.Label(frame, text="PMX:")
    label.grid(row=0, column=0, sticky="e")
    tb_path = tk.Entry(frame, textvariable=path_var, width=100)
    tb_path.grid(row=0, column=1, padx=8, pady=5)
    browse_btn = tk.Button(frame, text="Browse...", command=lambda: browse_file(path_var))
    browse_btn.grid(row=0, column=2)
    ToolTip(tb_path, "PMX file to inspect. Drop a file here or browse for one.")

    tb_path.drop_target_register(DND_FILES)
    def handle_drop(e):
        path_var.set(e.data.strip('{}').split()[0])
        update_cb()
    tb_path.dnd_bind('<<Drop>>', handle_drop)

    ##########################################################
    # Checkboxes for listing options
    list_options_frame = tk.LabelFrame(frame, text="List Element Names", padx=10, pady=10)
    list_options_frame.grid(row=1, column=0, columnspan=3, pady=4, sticky="we")
    for i, (section, var) in enumerate(list_vars.items()):
        cb = tk.Checkbutton(list_options_frame, text=section.capitalize(), variable=var)
        cb.grid(row=0, column=i, sticky="w", padx=5, pady=2)

    # Report output
    output = tk.Text(frame, width=100, height=30, state="disabled")
    output.grid(row=3, column=0, columnspan=3, pady=4, sticky="nsew")

    run_button.config(
        text="▶ Inspect PMX",
        font=("Arial", 16, "bold"),
        command=lambda: run_inspect(
            path_var.get(),
            output,
            **{f"list_{section.lower()}": var.get() for section, var in list_vars.items()},
        ),
    )
    run_button.grid(row=2, column=0, columnspan=3, pady=10, sticky="ew")
    ToolTip(run_button, "Click to decode the PMX file and show its structure.")

    path_var.trace_add("write", lambda *args: update_cb())
    update_cb()

    # On close event to save settings
    def on_close():
        current_settings = {"input_pmx": path_var.get()}
        current_settings.update({f"list_{section.lower()}": var.get() for section, var in list_vars.items()})
        save_settings(current_settings)
        root.destroy()
    root.protocol("WM_DELETE_WINDOW", on_close)

    root.mainloop()

if __name__ == "__main__":
    main()

# End of pmxinfo_gui.py
