# one trailing filename extension of 1-7 word characters, e.g. ".spt", ".pdb"
filename_extension_pattern = r"[.]\w{1,7}$"

"""
The virtual display startup helper reports the server it started as:
        PID='12345'  DISPLAY=':99'
"""
xvfb_startup_pattern = r"(?i)PID='(\d+)'\s+DISPLAY='(.*?)'"
